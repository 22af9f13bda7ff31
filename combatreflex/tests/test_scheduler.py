"""End-to-end scheduler runs on the virtual clock.

With FixedGenerator(interval=1000) a single-mode session starts at
3800 ms (3 x 1000 ms countdown + 800 ms settle) and hit k completes at
3800 + k * 1800 ms (1000 ms gap + 800 ms display).
"""

import pytest

from combatreflex.training.phases import Phase
from combatreflex.training.program import Action

SESSION_START = 3800
HIT_MS = 1800


def hit_done(k):
    return SESSION_START + k * HIT_MS


def events_of(sch):
    seen = []
    sch.add_listener(lambda name, payload: seen.append((name, dict(payload))))
    return seen


# -----------------------
# Countdown
# -----------------------

def test_countdown_ticks_then_training(make_scheduler, presenter, audio):
    sch = make_scheduler()
    assert sch.start()
    assert sch.phase is Phase.COUNTDOWN

    sch.timers.advance_to(3000)
    assert sch.phase is Phase.COUNTDOWN
    assert sch.state.countdown_value == 0
    assert audio.calls.count("play_countdown") == 3

    sch.timers.advance_to(SESSION_START - 1)
    assert sch.phase is Phase.COUNTDOWN

    sch.timers.advance_to(SESSION_START)
    assert sch.phase is Phase.TRAINING
    assert sch.state.session_total_hits == 10
    assert sch.state.session_start_ms == SESSION_START
    assert "play_session_start" in audio.calls

    shown = [f.countdown for f in presenter.frames if f.phase is Phase.COUNTDOWN]
    assert shown[:4] == [3, 2, 1, 0]


def test_start_only_from_idle(make_scheduler):
    sch = make_scheduler()
    assert sch.start()
    assert not sch.start()


# -----------------------
# Single mode
# -----------------------

def test_two_sessions_reach_break_then_second_countdown(make_scheduler, history):
    sch = make_scheduler(sessions=2, hits=10)
    seen = events_of(sch)
    sch.start()

    sch.timers.advance_to(hit_done(9))
    assert sch.phase is Phase.TRAINING
    assert sch.state.hits_completed == 9

    sch.timers.advance_to(hit_done(10))
    assert sch.phase is Phase.BREAK
    assert sch.state.break_remaining_s == 30

    phases = [p["phase"] for name, p in seen if name == "phase"]
    assert phases[-2:] == ["SESSION_END", "BREAK"]
    assert len([1 for name, _ in seen if name == "stimulus"]) == 10

    entries = history.load()
    assert len(entries) == 1
    assert entries[0].hits_completed == 10
    assert entries[0].total_hits == 10
    assert entries[0].session_number == 1
    assert not entries[0].aborted

    sch.timers.advance_to(hit_done(10) + 30000)
    assert sch.phase is Phase.COUNTDOWN
    assert sch.state.current_session == 2
    assert sch.state.hits_completed == 0


def test_last_session_completes_and_releases_wake_lock(make_scheduler, wake_lock, audio):
    sch = make_scheduler(sessions=1, hits=3)
    sch.start()
    assert wake_lock.held

    sch.timers.run_until_idle()
    assert sch.phase is Phase.COMPLETE
    assert sch.state.program_end_ms == hit_done(3)
    assert not wake_lock.held
    assert wake_lock.releases == 1
    assert "play_session_end" in audio.calls
    assert sch.timers.pending == 0


def test_action_shown_for_display_window_only(make_scheduler):
    sch = make_scheduler(mode="punches", hits=2)
    sch.start()

    sch.timers.advance_to(SESSION_START + 1000)
    assert sch.current_action is Action.PUNCH
    assert sch.state.hits_completed == 0

    sch.timers.advance_to(SESSION_START + 1799)
    assert sch.current_action is Action.PUNCH

    sch.timers.advance_to(SESSION_START + 1800)
    assert sch.current_action is None
    assert sch.state.hits_completed == 1


@pytest.mark.parametrize("mode, expected", [
    ("punches", {"punch"}),
    ("kicks", {"kick"}),
])
def test_restricted_modes_only_fire_their_action(make_scheduler, mode, expected):
    sch = make_scheduler(mode=mode, hits=6)
    seen = events_of(sch)
    sch.start()
    sch.timers.run_until_idle()
    actions = {p["action"] for name, p in seen if name == "stimulus"}
    assert actions == expected


# -----------------------
# Stop
# -----------------------

def test_stop_mid_training_keeps_partial_hits(make_scheduler, history, wake_lock):
    sch = make_scheduler(sessions=2, hits=10)
    seen = events_of(sch)
    sch.start()

    sch.timers.advance_to(hit_done(3))
    # fourth cue is on screen but not yet counted
    sch.timers.advance_to(hit_done(3) + 1200)
    assert sch.current_action is not None

    assert sch.stop()
    assert sch.phase is Phase.COMPLETE
    assert sch.timers.pending == 0
    assert sch.current_action is None
    assert not wake_lock.held

    stimuli_before = len([1 for name, _ in seen if name == "stimulus"])
    sch.timers.advance(120000)
    assert len([1 for name, _ in seen if name == "stimulus"]) == stimuli_before

    entries = history.load()
    assert len(entries) == 1
    assert entries[0].aborted
    assert entries[0].hits_completed == 3
    assert entries[0].total_hits == 10
    assert sch.run_entries[0].aborted


def test_stop_during_break_records_nothing_new(make_scheduler, history):
    sch = make_scheduler(sessions=2, hits=2)
    sch.start()
    sch.timers.advance_to(hit_done(2) + 5000)
    assert sch.phase is Phase.BREAK

    sch.stop()
    assert sch.phase is Phase.COMPLETE
    assert len(history.load()) == 1
    assert not history.load()[0].aborted


def test_stop_during_countdown_records_nothing(make_scheduler, history):
    sch = make_scheduler()
    sch.start()
    sch.timers.advance_to(1500)
    assert sch.stop()
    assert sch.phase is Phase.COMPLETE
    assert history.load() == []


def test_stop_when_not_running_is_ignored(make_scheduler):
    sch = make_scheduler()
    assert not sch.stop()
    assert sch.phase is Phase.IDLE


# -----------------------
# Break
# -----------------------

def test_break_warning_fires_once_at_five_seconds(make_scheduler, audio):
    sch = make_scheduler(sessions=2, hits=1)
    seen = events_of(sch)
    sch.start()

    end = hit_done(1)
    sch.timers.advance_to(end + 24999)
    assert "play_warning" not in audio.calls

    sch.timers.advance_to(end + 25000)
    assert sch.state.break_remaining_s == 5
    assert audio.calls.count("play_warning") == 1

    sch.timers.advance_to(end + 30000)
    assert audio.calls.count("play_warning") == 1
    assert len([1 for name, _ in seen if name == "break_warning"]) == 1
    assert sch.phase is Phase.COUNTDOWN


def test_rest_disabled_skips_break(make_scheduler):
    sch = make_scheduler(sessions=2, hits=2, rest_enabled=False)
    seen = events_of(sch)
    sch.start()

    sch.timers.advance_to(hit_done(2))
    assert sch.phase is Phase.COUNTDOWN
    assert sch.state.current_session == 2
    assert "BREAK" in [p["phase"] for name, p in seen if name == "phase"]


def test_break_length_rounds_to_whole_seconds(make_scheduler):
    sch = make_scheduler(sessions=2, hits=1, break_ms=12600)
    sch.start()
    sch.timers.advance_to(hit_done(1))
    assert sch.state.break_remaining_s == 13


def test_skip_break(make_scheduler):
    sch = make_scheduler(sessions=3, hits=1)
    sch.start()
    assert not sch.skip_break()

    sch.timers.advance_to(hit_done(1) + 2000)
    assert sch.skip_break()
    assert sch.phase is Phase.COUNTDOWN
    assert sch.state.current_session == 2
    assert sch.state.countdown_value == 3


# -----------------------
# Mid-session rest
# -----------------------

def test_mid_rest_once_at_half_target(make_scheduler):
    sch = make_scheduler(hits=10, mid_rest=True)
    seen = events_of(sch)
    sch.start()

    sch.timers.advance_to(hit_done(5))
    assert sch.phase is Phase.MID_REST
    assert sch.state.mid_rest_taken

    sch.timers.advance_to(hit_done(5) + 6999)
    assert sch.phase is Phase.MID_REST
    sch.timers.advance_to(hit_done(5) + 7000)
    assert sch.phase is Phase.TRAINING

    sch.timers.run_until_idle()
    assert sch.phase is Phase.COMPLETE
    assert sch.state.hits_completed == 10
    rests = [p for name, p in seen if name == "phase" and p["phase"] == "MID_REST"]
    assert len(rests) == 1


def test_mid_rest_off_by_default(make_scheduler):
    sch = make_scheduler(hits=10)
    seen = events_of(sch)
    sch.start()
    sch.timers.run_until_idle()
    assert "MID_REST" not in [p["phase"] for name, p in seen if name == "phase"]


def test_mid_rest_ignored_in_combo_mode(make_scheduler):
    sch = make_scheduler(training_type="combo", mid_rest=True, total_combos=4)
    seen = events_of(sch)
    sch.start()
    sch.timers.run_until_idle()
    assert "MID_REST" not in [p["phase"] for name, p in seen if name == "phase"]


# -----------------------
# Combo mode
# -----------------------

def test_combo_strikes_fire_at_offsets(make_scheduler, fixed_generator):
    sch = make_scheduler(training_type="combo", total_combos=1,
                         generator=fixed_generator(gaps=(100, 100)))
    seen = events_of(sch)
    sch.start()
    sch.timers.run_until_idle()

    entry = sch.run_entries[0]
    strikes = [p["t"] for name, p in seen if name == "stimulus"]
    assert [t - SESSION_START for t in strikes] == [0, 100, 200]
    start = next(p for name, p in seen if name == "combo_start")
    assert start["offsets"] == [0, 100, 200]
    assert start["span"] == 200
    assert entry.combos_completed == 1
    assert entry.hits_completed == 3
    assert entry.total_hits == 3
    assert entry.total_combos == 1


def test_combo_session_counts_combos(make_scheduler, fixed_generator, presenter):
    sch = make_scheduler(training_type="combo", total_combos=3,
                         generator=fixed_generator(gaps=(100, 100), rest=500))
    seen = events_of(sch)
    sch.start()

    # first combo: strikes 3800/3900/4000, each shown 300 ms
    sch.timers.advance_to(4299)
    assert sch.state.combos_completed == 0
    sch.timers.advance_to(4300)
    assert sch.state.combos_completed == 1
    assert sch.state.hits_completed == 3

    # next combo after the 500 ms rest
    sch.timers.advance_to(4799)
    assert len([1 for name, _ in seen if name == "combo_start"]) == 1
    sch.timers.advance_to(4800)
    assert len([1 for name, _ in seen if name == "combo_start"]) == 2

    sch.timers.run_until_idle()
    assert sch.phase is Phase.COMPLETE
    assert sch.state.combos_completed == 3
    last = [f for f in presenter.frames if f.phase is Phase.TRAINING][-1]
    assert last.is_combo
    assert last.total == 3


def test_combo_overlapping_strike_stays_visible(make_scheduler, fixed_generator):
    # strikes 50 ms apart overlap the 300 ms display window
    sch = make_scheduler(mode="punches", training_type="combo", total_combos=1,
                         generator=fixed_generator(gaps=(50,)))
    sch.start()
    sch.timers.advance_to(SESSION_START + 300)
    # first strike's window closed, second still on screen
    assert sch.current_action is Action.PUNCH
    sch.timers.advance_to(SESSION_START + 350)
    assert sch.current_action is None


def test_single_strike_combo(make_scheduler, fixed_generator):
    sch = make_scheduler(training_type="combo", total_combos=2, generator=fixed_generator(gaps=()))
    sch.start()
    sch.timers.run_until_idle()
    assert sch.state.combos_completed == 2
    assert sch.state.hits_completed == 2


# -----------------------
# Phase requests, reset, train again
# -----------------------

def test_unreachable_phase_request_is_rejected(make_scheduler):
    sch = make_scheduler()
    before = sch.state
    assert not sch.request_phase(Phase.TRAINING)
    assert not sch.request_phase("NOT_A_PHASE")
    assert sch.state is before

    sch.start()
    before = sch.state
    assert not sch.request_phase(Phase.BREAK)
    assert sch.state is before


def test_requested_phases_follow_the_table(make_scheduler):
    sch = make_scheduler(sessions=2)
    assert sch.request_phase(Phase.COUNTDOWN)
    assert sch.request_phase(Phase.TRAINING)
    assert sch.phase is Phase.TRAINING
    assert sch.request_phase(Phase.SESSION_END)
    assert sch.phase is Phase.BREAK
    assert sch.request_phase(Phase.COMPLETE)
    assert sch.phase is Phase.COMPLETE
    assert sch.request_phase(Phase.IDLE)
    assert sch.phase is Phase.IDLE


def test_reset_only_from_complete(make_scheduler):
    sch = make_scheduler(hits=1)
    assert not sch.reset()
    sch.start()
    assert not sch.reset()
    sch.timers.run_until_idle()
    assert sch.reset()
    assert sch.phase is Phase.IDLE
    assert sch.state.hits_completed == 0
    assert sch.run_entries == []


def test_train_again_starts_fresh_run(make_scheduler, history):
    sch = make_scheduler(hits=2)
    sch.start()
    sch.timers.run_until_idle()
    assert len(sch.run_entries) == 1

    assert sch.train_again()
    assert sch.phase is Phase.COUNTDOWN
    assert sch.state.current_session == 1
    assert sch.run_entries == []

    sch.timers.run_until_idle()
    assert len(history.load()) == 2


def test_teardown_cancels_everything(make_scheduler, wake_lock):
    sch = make_scheduler()
    sch.start()
    sch.timers.advance_to(SESSION_START + 500)
    sch.teardown()
    assert sch.timers.pending == 0
    assert not wake_lock.held


# -----------------------
# Collaborators
# -----------------------

def test_visibility_reacquires_dropped_wake_lock(make_scheduler, wake_lock):
    sch = make_scheduler()
    sch.start()
    assert wake_lock.requests == 1

    wake_lock.held = False          # revoked by the OS
    sch.handle_visibility(False)
    assert wake_lock.requests == 1
    sch.handle_visibility(True)
    assert wake_lock.requests == 2
    assert wake_lock.held

    sch.handle_visibility(True)     # still held: nothing to do
    assert wake_lock.requests == 2


def test_visibility_after_complete_does_nothing(make_scheduler, wake_lock):
    sch = make_scheduler(hits=1)
    sch.start()
    sch.timers.run_until_idle()
    sch.handle_visibility(True)
    assert wake_lock.requests == 1


def test_denied_wake_lock_does_not_stop_run(make_scheduler, wake_lock):
    lock = type(wake_lock)(grant=False)
    sch = make_scheduler(hits=2, wake_lock=lock)
    sch.start()
    sch.timers.run_until_idle()
    assert sch.phase is Phase.COMPLETE


def test_failing_collaborators_are_tolerated(make_scheduler, history):
    class Broken:
        def render(self, frame):
            raise RuntimeError("display gone")

        def __getattr__(self, name):
            def boom():
                raise RuntimeError("no audio device")
            return boom

    class BrokenLock:
        is_held = False

        def request(self):
            raise OSError("denied")

        def release(self):
            raise OSError("gone")

    sch = make_scheduler(sessions=2, hits=2, presenter=Broken(), audio=Broken(), wake_lock=BrokenLock())
    sch.add_listener(lambda name, payload: 1 / 0)
    sch.start()
    sch.timers.run_until_idle()
    assert sch.phase is Phase.COMPLETE
    assert len(history.load()) == 2


def test_presenter_stopping_mid_render_does_not_reschedule(make_scheduler):
    holder = {}

    class StopOnFirstCue:
        def render(self, frame):
            if frame.action is not None:
                holder["sch"].stop()

    sch = make_scheduler(hits=5, presenter=StopOnFirstCue())
    holder["sch"] = sch
    sch.start()
    sch.timers.run_until_idle()
    assert sch.phase is Phase.COMPLETE
    assert sch.timers.pending == 0
    assert sch.state.hits_completed == 0


def test_history_failure_is_logged_not_raised(make_scheduler):
    class FullDisk:
        def record(self, entry):
            raise OSError("disk full")

    sch = make_scheduler(hits=1, history=FullDisk())
    sch.start()
    sch.timers.run_until_idle()
    assert sch.phase is Phase.COMPLETE
    assert len(sch.run_entries) == 1
