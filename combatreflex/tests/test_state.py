import pytest

from combatreflex.training import state as st
from combatreflex.training.phases import (
    InvalidTransitionError,
    Phase,
    TRANSITIONS,
    can_transition,
    is_running,
)


def test_every_phase_has_an_exit():
    assert set(TRANSITIONS) == set(Phase)
    assert all(TRANSITIONS[p] for p in Phase)


@pytest.mark.parametrize("current, requested", [
    (Phase.IDLE, Phase.TRAINING),
    (Phase.IDLE, Phase.COMPLETE),
    (Phase.COUNTDOWN, Phase.BREAK),
    (Phase.TRAINING, Phase.BREAK),
    (Phase.BREAK, Phase.TRAINING),
    (Phase.COMPLETE, Phase.COUNTDOWN),
])
def test_invalid_transitions(current, requested):
    assert not can_transition(current, requested)
    with pytest.raises(InvalidTransitionError) as exc:
        st.with_phase(st.ProgramState(phase=current), requested)
    assert exc.value.current is current
    assert exc.value.requested is requested


def test_is_running():
    assert not is_running(Phase.IDLE)
    assert not is_running(Phase.COMPLETE)
    assert is_running(Phase.BREAK)


def test_functions_do_not_mutate():
    s0 = st.ProgramState()
    s1 = st.start(s0, 500)
    assert s0.phase is Phase.IDLE
    assert s1.phase is Phase.COUNTDOWN
    assert s1.program_start_ms == 500
    assert s1.countdown_value == 3


def test_session_walkthrough():
    s = st.start(st.ProgramState(), 0)
    s = st.tick_countdown(st.tick_countdown(st.tick_countdown(st.tick_countdown(s))))
    assert s.countdown_value == 0

    s = st.begin_session(s, 20, 3800)
    assert (s.phase, s.session_total_hits, s.session_start_ms) == (Phase.TRAINING, 20, 3800)
    s = st.record_hit(st.record_hit(s))
    s = st.enter_mid_rest(s)
    assert s.mid_rest_taken
    s = st.resume_training(s)

    s = st.end_session(s, 9000)
    assert s.session_recorded and s.session_end_ms == 9000
    s = st.begin_break(s, 30)
    s = st.tick_break(s)
    assert s.break_remaining_s == 29

    s = st.next_session(s)
    assert s.phase is Phase.COUNTDOWN
    assert s.current_session == 2
    assert s.hits_completed == 0 and not s.session_recorded and not s.mid_rest_taken
    assert s.program_start_ms == 0


def test_complete_keeps_counters_and_reset_clears():
    s = st.begin_session(st.start(st.ProgramState(), 0), 5, 100)
    s = st.record_combo(st.record_hit(s))
    done = st.complete(s, 4000)
    assert done.hits_completed == 1 and done.combos_completed == 1
    assert done.program_end_ms == 4000
    assert st.reset(done) == st.ProgramState()


def test_reset_only_from_complete():
    with pytest.raises(InvalidTransitionError):
        st.reset(st.start(st.ProgramState(), 0))


def test_break_tick_floors_at_zero():
    s = st.ProgramState(phase=Phase.SESSION_END)
    s = st.begin_break(s, -4)
    assert st.tick_break(s).break_remaining_s == 0
