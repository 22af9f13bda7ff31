import logging
import os
import subprocess
import sys
from typing import Optional

log = logging.getLogger(__name__)

# SetThreadExecutionState flags
_ES_CONTINUOUS = 0x80000000
_ES_SYSTEM_REQUIRED = 0x00000001
_ES_DISPLAY_REQUIRED = 0x00000002


class SystemWakeLock:
    """
    Keeps the display awake while a program runs.
    - macOS: `caffeinate -d` child process
    - Linux: `systemd-inhibit` child process (idle inhibitor)
    - Windows: SetThreadExecutionState
    - Anything else: request() returns False and the run goes on
    """

    def __init__(self):
        self._proc: Optional[subprocess.Popen] = None
        self._win_held = False

    @property
    def is_held(self) -> bool:
        if self._win_held:
            return True
        # the OS (or the user) may have killed the helper
        return self._proc is not None and self._proc.poll() is None

    def request(self) -> bool:
        if self.is_held:
            return True
        self._proc = None

        try:
            if sys.platform.startswith("win"):
                import ctypes
                flags = _ES_CONTINUOUS | _ES_SYSTEM_REQUIRED | _ES_DISPLAY_REQUIRED
                ok = ctypes.windll.kernel32.SetThreadExecutionState(flags)
                self._win_held = bool(ok)
                return self._win_held

            if sys.platform == "darwin":
                cmd = ["caffeinate", "-d", "-w", str(os.getpid())]
            elif sys.platform.startswith("linux"):
                cmd = [
                    "systemd-inhibit",
                    "--what=idle",
                    "--who=Combat Reflex",
                    "--why=Training in progress",
                    "--mode=block",
                    "sleep", "infinity",
                ]
            else:
                log.info("No wake lock support on %s", sys.platform)
                return False

            self._proc = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            log.debug("Wake lock held via %s (pid %s)", cmd[0], self._proc.pid)
            return True

        except (OSError, AttributeError) as e:
            log.warning("Wake lock request failed: %r", e)
            self._proc = None
            self._win_held = False
            return False

    def release(self) -> None:
        if self._win_held:
            try:
                import ctypes
                ctypes.windll.kernel32.SetThreadExecutionState(_ES_CONTINUOUS)
            except (OSError, AttributeError) as e:
                log.warning("Wake lock release failed: %r", e)
            self._win_held = False

        proc, self._proc = self._proc, None
        if proc is None or proc.poll() is not None:
            return
        proc.terminate()
        try:
            proc.wait(timeout=2)
        except subprocess.TimeoutExpired:
            proc.kill()
        log.debug("Wake lock released")
