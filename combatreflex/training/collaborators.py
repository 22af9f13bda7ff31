"""
What the scheduler talks to. Any object with these methods works; the
Qt app passes its screens and CueSounds, tests pass recorders.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from combatreflex.core.storage import SessionHistoryEntry
from combatreflex.training.phases import Phase
from combatreflex.training.program import Action


@dataclass(frozen=True)
class Frame:
    phase: Phase
    action: Optional[Action]
    current: int              # hits, or combos in combo mode
    total: int
    hits_completed: int
    session: int
    total_sessions: int
    countdown: int
    break_remaining_s: int
    is_combo: bool = False


class Presenter(Protocol):
    def render(self, frame: Frame) -> None: ...


class CueSink(Protocol):
    def play_punch(self) -> None: ...
    def play_kick(self) -> None: ...
    def play_session_start(self) -> None: ...
    def play_session_end(self) -> None: ...
    def play_warning(self) -> None: ...
    def play_countdown(self) -> None: ...


class WakeHold(Protocol):
    @property
    def is_held(self) -> bool: ...

    def request(self) -> bool: ...
    def release(self) -> None: ...


class HistorySink(Protocol):
    def record(self, entry: SessionHistoryEntry) -> SessionHistoryEntry: ...
