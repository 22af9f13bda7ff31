import subprocess

import pytest

from combatreflex.core import wake_lock as wl


class FakeProc:
    started = []

    def __init__(self, cmd, **kwargs):
        self.cmd = cmd
        self.pid = 4242
        self.returncode = None
        self.terminated = False
        FakeProc.started.append(self)

    def poll(self):
        return self.returncode

    def terminate(self):
        self.terminated = True
        self.returncode = -15

    def wait(self, timeout=None):
        return self.returncode

    def kill(self):
        self.returncode = -9


@pytest.fixture
def fake_popen(monkeypatch):
    FakeProc.started = []
    monkeypatch.setattr(wl.subprocess, "Popen", FakeProc)
    return FakeProc


def test_linux_uses_systemd_inhibit(monkeypatch, fake_popen):
    monkeypatch.setattr(wl.sys, "platform", "linux")
    lock = wl.SystemWakeLock()
    assert lock.request()
    assert lock.is_held
    assert fake_popen.started[0].cmd[0] == "systemd-inhibit"

    # second request reuses the helper
    assert lock.request()
    assert len(fake_popen.started) == 1

    lock.release()
    assert fake_popen.started[0].terminated
    assert not lock.is_held


def test_macos_uses_caffeinate(monkeypatch, fake_popen):
    monkeypatch.setattr(wl.sys, "platform", "darwin")
    lock = wl.SystemWakeLock()
    assert lock.request()
    assert fake_popen.started[0].cmd[:2] == ["caffeinate", "-d"]
    lock.release()


def test_killed_helper_is_not_held(monkeypatch, fake_popen):
    monkeypatch.setattr(wl.sys, "platform", "linux")
    lock = wl.SystemWakeLock()
    lock.request()
    fake_popen.started[0].returncode = 1
    assert not lock.is_held
    # a fresh request spawns a new helper
    assert lock.request()
    assert len(fake_popen.started) == 2


def test_missing_helper_binary(monkeypatch):
    def boom(*a, **kw):
        raise FileNotFoundError("systemd-inhibit")

    monkeypatch.setattr(wl.sys, "platform", "linux")
    monkeypatch.setattr(wl.subprocess, "Popen", boom)
    lock = wl.SystemWakeLock()
    assert lock.request() is False
    assert not lock.is_held
    lock.release()


def test_unsupported_platform(monkeypatch, fake_popen):
    monkeypatch.setattr(wl.sys, "platform", "sunos5")
    lock = wl.SystemWakeLock()
    assert lock.request() is False
    assert fake_popen.started == []


def test_release_kills_stuck_helper(monkeypatch, fake_popen):
    monkeypatch.setattr(wl.sys, "platform", "linux")
    lock = wl.SystemWakeLock()
    lock.request()
    proc = fake_popen.started[0]

    def stuck(timeout=None):
        raise subprocess.TimeoutExpired(proc.cmd, timeout)

    proc.terminate = lambda: None
    proc.wait = stuck
    lock.release()
    assert proc.returncode == -9
