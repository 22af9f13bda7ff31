# combatreflex/training/program.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from combatreflex.core.difficulty import MAX_SESSIONS, MIN_SESSIONS, DifficultyProfile


class Action(str, Enum):
    PUNCH = "punch"   # strike A
    KICK = "kick"     # strike B


class Mode(str, Enum):
    PUNCHES = "punches"
    KICKS = "kicks"
    BOTH = "both"


class TrainingType(str, Enum):
    SINGLE = "single"
    COMBO = "combo"


def clamp_sessions(n) -> int:
    try:
        n = int(n)
    except (TypeError, ValueError):
        return MIN_SESSIONS
    return max(MIN_SESSIONS, min(MAX_SESSIONS, n))


@dataclass(frozen=True)
class TrainingProgram:
    """One run's configuration. `difficulty` must come from the resolver."""
    mode: Mode
    training_type: TrainingType
    number_of_sessions: int
    difficulty: DifficultyProfile
    mid_rest: bool = False

    def __post_init__(self):
        object.__setattr__(self, "mode", Mode(self.mode))
        object.__setattr__(self, "training_type", TrainingType(self.training_type))
        object.__setattr__(self, "number_of_sessions", clamp_sessions(self.number_of_sessions))

    @property
    def is_combo(self) -> bool:
        return self.training_type is TrainingType.COMBO
