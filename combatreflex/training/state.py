"""
Immutable program state plus the pure event functions that move it.

Every function takes a ProgramState and returns a new one; none of them
touch timers or collaborators. Phase changes go through `with_phase`,
which refuses anything outside the transition table.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from combatreflex.core.difficulty import COUNTDOWN_TICKS
from combatreflex.training.phases import InvalidTransitionError, Phase, can_transition


@dataclass(frozen=True)
class ProgramState:
    phase: Phase = Phase.IDLE
    current_session: int = 1
    hits_completed: int = 0
    combos_completed: int = 0
    session_total_hits: Optional[int] = None
    session_start_ms: Optional[int] = None
    session_end_ms: Optional[int] = None
    program_start_ms: Optional[int] = None
    program_end_ms: Optional[int] = None
    countdown_value: int = COUNTDOWN_TICKS
    break_remaining_s: int = 0
    mid_rest_taken: bool = False
    session_recorded: bool = False


def with_phase(state: ProgramState, phase: Phase) -> ProgramState:
    if not can_transition(state.phase, phase):
        raise InvalidTransitionError(state.phase, Phase(phase))
    return replace(state, phase=Phase(phase))


def _fresh_session(state: ProgramState) -> ProgramState:
    return replace(
        state,
        hits_completed=0,
        combos_completed=0,
        session_total_hits=None,
        session_start_ms=None,
        session_end_ms=None,
        countdown_value=COUNTDOWN_TICKS,
        break_remaining_s=0,
        mid_rest_taken=False,
        session_recorded=False,
    )


def start(state: ProgramState, now_ms: int) -> ProgramState:
    s = with_phase(state, Phase.COUNTDOWN)
    s = _fresh_session(replace(s, current_session=1, program_end_ms=None))
    if s.program_start_ms is None:
        s = replace(s, program_start_ms=now_ms)
    return s


def tick_countdown(state: ProgramState) -> ProgramState:
    return replace(state, countdown_value=max(0, state.countdown_value - 1))


def begin_session(state: ProgramState, total_hits: int, now_ms: int) -> ProgramState:
    s = with_phase(state, Phase.TRAINING)
    return replace(s, session_total_hits=int(total_hits), session_start_ms=now_ms, countdown_value=0)


def record_hit(state: ProgramState) -> ProgramState:
    return replace(state, hits_completed=state.hits_completed + 1)


def record_combo(state: ProgramState) -> ProgramState:
    return replace(state, combos_completed=state.combos_completed + 1)


def enter_mid_rest(state: ProgramState) -> ProgramState:
    return replace(with_phase(state, Phase.MID_REST), mid_rest_taken=True)


def resume_training(state: ProgramState) -> ProgramState:
    return with_phase(state, Phase.TRAINING)


def end_session(state: ProgramState, now_ms: int) -> ProgramState:
    s = with_phase(state, Phase.SESSION_END)
    return replace(s, session_end_ms=now_ms, session_recorded=True)


def begin_break(state: ProgramState, seconds: int) -> ProgramState:
    return replace(with_phase(state, Phase.BREAK), break_remaining_s=max(0, int(seconds)))


def tick_break(state: ProgramState) -> ProgramState:
    return replace(state, break_remaining_s=max(0, state.break_remaining_s - 1))


def next_session(state: ProgramState) -> ProgramState:
    s = with_phase(state, Phase.COUNTDOWN)
    return _fresh_session(replace(s, current_session=s.current_session + 1))


def complete(state: ProgramState, now_ms: int) -> ProgramState:
    """Counters are kept so the results screen can read them."""
    s = with_phase(state, Phase.COMPLETE)
    return replace(s, program_end_ms=now_ms)


def reset(state: ProgramState) -> ProgramState:
    with_phase(state, Phase.IDLE)
    return ProgramState()


def abort_session(state: ProgramState, now_ms: int) -> ProgramState:
    """Session cut short by stop; it gets recorded once, as aborted."""
    return replace(state, session_end_ms=now_ms, session_recorded=True)
