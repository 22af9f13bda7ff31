from enum import Enum
from typing import Dict, FrozenSet


class Phase(str, Enum):
    IDLE = "IDLE"
    COUNTDOWN = "COUNTDOWN"
    TRAINING = "TRAINING"
    MID_REST = "MID_REST"
    SESSION_END = "SESSION_END"
    BREAK = "BREAK"
    COMPLETE = "COMPLETE"


class InvalidTransitionError(RuntimeError):
    def __init__(self, current: Phase, requested: Phase):
        super().__init__(f"cannot go from {current.value} to {requested.value}")
        self.current = current
        self.requested = requested


TRANSITIONS: Dict[Phase, FrozenSet[Phase]] = {
    Phase.IDLE: frozenset({Phase.COUNTDOWN}),
    Phase.COUNTDOWN: frozenset({Phase.TRAINING, Phase.COMPLETE}),
    Phase.TRAINING: frozenset({Phase.MID_REST, Phase.SESSION_END, Phase.COMPLETE}),
    Phase.MID_REST: frozenset({Phase.TRAINING, Phase.COMPLETE}),
    Phase.SESSION_END: frozenset({Phase.BREAK, Phase.COMPLETE}),
    Phase.BREAK: frozenset({Phase.COUNTDOWN, Phase.COMPLETE}),
    Phase.COMPLETE: frozenset({Phase.IDLE}),
}

TERMINAL = frozenset({Phase.IDLE, Phase.COMPLETE})


def can_transition(current: Phase, requested: Phase) -> bool:
    return Phase(requested) in TRANSITIONS[Phase(current)]


def is_running(phase: Phase) -> bool:
    return Phase(phase) not in TERMINAL
