"""pytest configuration and shared fakes."""

import logging
import os
import random
from dataclasses import replace

import pytest

from combatreflex.core.difficulty import Range, RestSettings, get_builtin
from combatreflex.core.storage import JsonStore, SessionHistory
from combatreflex.training.program import TrainingProgram
from combatreflex.training.scheduler import SessionScheduler
from combatreflex.training.stimulus import ComboPlan, StimulusGenerator

# headless CI: no display server for pytest-qt
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


def pytest_configure(config):
    config.addinivalue_line("markers", "qt: needs a QApplication (pytest-qt)")


@pytest.fixture(autouse=True)
def _quiet_logs():
    logging.getLogger("combatreflex").setLevel(logging.WARNING)
    yield


# -----------------------
# Recorders
# -----------------------

class RecordingPresenter:
    def __init__(self):
        self.frames = []

    def render(self, frame):
        self.frames.append(frame)


class RecordingAudio:
    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        if not name.startswith("play_"):
            raise AttributeError(name)

        def play():
            self.calls.append(name)
        return play


class FakeWakeLock:
    def __init__(self, grant=True):
        self.grant = grant
        self.held = False
        self.requests = 0
        self.releases = 0

    @property
    def is_held(self):
        return self.held

    def request(self):
        self.requests += 1
        self.held = self.grant
        return self.grant

    def release(self):
        self.releases += 1
        self.held = False


class FixedGenerator(StimulusGenerator):
    """Deterministic choices: fixed interval, hits, combo plan and rest."""

    def __init__(self, interval=1000, hits=10, gaps=(100, 100), rest=500):
        super().__init__(random.Random(0))
        self._interval = interval
        self._hits = hits
        self._gaps = tuple(gaps)
        self._rest = rest

    def interval(self, difficulty):
        return self._interval

    def session_hits(self, difficulty):
        return self._hits

    def combo_rest(self, combo):
        return self._rest

    def combo(self, combo):
        return ComboPlan(size=len(self._gaps) + 1, gaps=self._gaps)


# -----------------------
# Fixtures
# -----------------------

@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "data")


@pytest.fixture
def history(store):
    return SessionHistory(store)


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def audio():
    return RecordingAudio()


@pytest.fixture
def wake_lock():
    return FakeWakeLock()


def make_difficulty(hits=10, total_combos=3, rest_enabled=True, break_ms=30000):
    base = get_builtin("normal")
    return replace(
        base,
        total_hits=Range(hits, hits),
        combo=replace(base.combo, total_combos=total_combos),
        rest=RestSettings(enabled=rest_enabled, break_duration=break_ms),
    )


@pytest.fixture
def make_scheduler(presenter, audio, wake_lock, history):
    def _make(mode="both", training_type="single", sessions=1, mid_rest=False,
              difficulty=None, generator=None, hits=10, total_combos=3,
              rest_enabled=True, break_ms=30000, **collab):
        program = TrainingProgram(
            mode=mode,
            training_type=training_type,
            number_of_sessions=sessions,
            difficulty=difficulty or make_difficulty(hits, total_combos, rest_enabled, break_ms),
            mid_rest=mid_rest,
        )
        kwargs = dict(presenter=presenter, audio=audio, wake_lock=wake_lock, history=history)
        kwargs.update(collab)
        return SessionScheduler(program, generator=generator or FixedGenerator(hits=hits), **kwargs)
    return _make


@pytest.fixture
def fixed_generator():
    return FixedGenerator
