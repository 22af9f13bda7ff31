# combatreflex/training/scheduler.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from combatreflex.core.difficulty import (
    BREAK_WARNING_S,
    COMBO_DISPLAY_MS,
    COUNTDOWN_SETTLE_MS,
    COUNTDOWN_TICK_MS,
    MID_REST_MS,
    SINGLE_DISPLAY_MS,
)
from combatreflex.core.storage import SessionHistoryEntry
from combatreflex.training import state as st
from combatreflex.training.collaborators import CueSink, Frame, HistorySink, Presenter, WakeHold
from combatreflex.training.phases import InvalidTransitionError, Phase, can_transition, is_running
from combatreflex.training.program import Action, TrainingProgram
from combatreflex.training.stimulus import StimulusGenerator
from combatreflex.training.timers import TimerQueue

log = logging.getLogger(__name__)

Listener = Callable[[str, Dict[str, Any]], None]


class SessionScheduler:
    """
    Runs one program: COUNTDOWN -> TRAINING -> (MID_REST) -> SESSION_END
    -> BREAK -> ... -> COMPLETE.

    - State lives in an immutable ProgramState, replaced on every event
    - All timers go through one TimerQueue; every phase exit clears it
      before the next phase schedules anything
    - Presenter / audio / wake lock failures are logged, never fatal
    """

    def __init__(
        self,
        program: TrainingProgram,
        timers: Optional[TimerQueue] = None,
        presenter: Optional[Presenter] = None,
        audio: Optional[CueSink] = None,
        wake_lock: Optional[WakeHold] = None,
        history: Optional[HistorySink] = None,
        generator: Optional[StimulusGenerator] = None,
    ):
        self.program = program
        self.timers = timers or TimerQueue()
        self.presenter = presenter
        self.audio = audio
        self.wake_lock = wake_lock
        self.history = history
        self.generator = generator or StimulusGenerator()

        self._state = st.ProgramState()
        self._action: Optional[Action] = None
        self._strike_id = 0
        self._gen = 0
        self._warning_played = False
        self._listeners: List[Listener] = []
        self.run_entries: List[SessionHistoryEntry] = []

    # -----------------------
    # Read side
    # -----------------------

    @property
    def state(self) -> st.ProgramState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def current_action(self) -> Optional[Action]:
        return self._action

    @property
    def now(self) -> int:
        return self.timers.now

    def frame(self) -> Frame:
        s = self._state
        if self.program.is_combo:
            current, total = s.combos_completed, self.program.difficulty.combo.total_combos
        else:
            current, total = s.hits_completed, s.session_total_hits or 0
        return Frame(
            phase=s.phase,
            action=self._action,
            current=current,
            total=total,
            hits_completed=s.hits_completed,
            session=s.current_session,
            total_sessions=self.program.number_of_sessions,
            countdown=s.countdown_value,
            break_remaining_s=s.break_remaining_s,
            is_combo=self.program.is_combo,
        )

    def add_listener(self, fn: Listener) -> None:
        self._listeners.append(fn)

    def remove_listener(self, fn: Listener) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    # -----------------------
    # Collaborator dispatch
    # -----------------------

    def _render(self) -> None:
        if self.presenter is None:
            return
        try:
            self.presenter.render(self.frame())
        except Exception:
            log.exception("Presenter failed")

    def _cue(self, name: str) -> None:
        if self.audio is None:
            return
        try:
            getattr(self.audio, name)()
        except Exception as e:
            log.warning("Audio cue %s failed: %r", name, e)

    def _emit(self, event: str, **data) -> None:
        payload = {
            "t": self.now,
            "session": self._state.current_session,
            "hits": self._state.hits_completed,
            "combos": self._state.combos_completed,
            **data,
        }
        for fn in list(self._listeners):
            try:
                fn(event, payload)
            except Exception:
                log.exception("Listener failed on %s", event)

    def _hold(self, on: bool) -> None:
        if self.wake_lock is None:
            return
        try:
            if on:
                if not self.wake_lock.request():
                    log.info("Wake lock not granted; continuing without it")
            else:
                self.wake_lock.release()
        except Exception as e:
            log.warning("Wake lock %s failed: %r", "request" if on else "release", e)

    # -----------------------
    # Timer plumbing
    # -----------------------

    def _clear_timers(self) -> None:
        self.timers.clear()
        self._gen += 1

    def _after(self, delay_ms: int, fn: Callable[[], None]) -> None:
        if not is_running(self._state.phase):
            return
        gen = self._gen

        def run():
            if gen == self._gen:
                fn()

        self.timers.schedule(delay_ms, run)

    def _set(self, new_state: st.ProgramState) -> None:
        old = self._state.phase
        self._state = new_state
        if new_state.phase is not old:
            log.debug("phase %s -> %s", old.value, new_state.phase.value)
            self._emit("phase", phase=new_state.phase.value, previous=old.value)

    # -----------------------
    # Public controls
    # -----------------------

    def start(self) -> bool:
        if self._state.phase is not Phase.IDLE:
            log.warning("start() ignored in %s", self._state.phase.value)
            return False
        self._clear_timers()
        self.run_entries = []
        self._action = None
        self._set(st.start(self._state, self.now))
        self._hold(True)
        self._countdown_tick()
        return True

    def stop(self) -> bool:
        """Hold-to-stop confirmed: keep what was done, go straight to COMPLETE."""
        s = self._state
        if not is_running(s.phase):
            return False

        self._clear_timers()
        self._action = None

        if s.session_start_ms is not None and not s.session_recorded:
            self._record(aborted=True)
            self._set(st.abort_session(self._state, self.now))

        self._emit("stop")
        self._complete()
        return True

    def reset(self) -> bool:
        if self._state.phase is not Phase.COMPLETE:
            log.warning("reset() ignored in %s", self._state.phase.value)
            return False
        self._clear_timers()
        self._action = None
        self.run_entries = []
        self._set(st.reset(self._state))
        self._render()
        return True

    def train_again(self) -> bool:
        return self.reset() and self.start()

    def skip_break(self) -> bool:
        if self._state.phase is not Phase.BREAK:
            return False
        self._next_session()
        return True

    def request_phase(self, phase: Phase) -> bool:
        """
        Externally requested phase change. Unreachable requests are
        rejected and leave the state untouched.
        """
        current = self._state.phase
        try:
            phase = Phase(phase)
        except ValueError:
            log.warning("Unknown phase requested: %r", phase)
            return False
        if not can_transition(current, phase):
            log.warning("Rejected phase request %s -> %s", current.value, phase.value)
            return False

        if phase is Phase.COMPLETE:
            return self.stop()
        if phase is Phase.IDLE:
            return self.reset()
        if phase is Phase.COUNTDOWN:
            return self.start() if current is Phase.IDLE else self.skip_break()
        if phase is Phase.TRAINING:
            if current is Phase.COUNTDOWN:
                self._begin_session()
            else:
                self._resume_training()
            return True
        if phase is Phase.MID_REST:
            if self.program.is_combo:
                log.warning("Mid-session rest is single mode only")
                return False
            self._enter_mid_rest()
            return True
        if phase is Phase.SESSION_END:
            self._finish_session()
            return True
        if phase is Phase.BREAK:
            self._begin_break()
            return True
        return False

    def handle_visibility(self, visible: bool) -> None:
        """Re-request the wake lock if something else dropped it mid-run."""
        if not visible or self.wake_lock is None:
            return
        if is_running(self._state.phase) and not getattr(self.wake_lock, "is_held", False):
            log.info("Re-acquiring wake lock after visibility change")
            self._hold(True)

    def teardown(self) -> None:
        self._clear_timers()
        self._action = None
        self._hold(False)

    # -----------------------
    # COUNTDOWN
    # -----------------------

    def _countdown_tick(self) -> None:
        value = self._state.countdown_value
        if value > 0:
            self._cue("play_countdown")
            self._emit("countdown", value=value)
            self._render()
            self._after(COUNTDOWN_TICK_MS, self._countdown_step)
        else:
            self._render()
            self._after(COUNTDOWN_SETTLE_MS, self._begin_session)

    def _countdown_step(self) -> None:
        self._set(st.tick_countdown(self._state))
        self._countdown_tick()

    def _begin_session(self) -> None:
        self._clear_timers()
        total = self.generator.session_hits(self.program.difficulty)
        self._set(st.begin_session(self._state, total, self.now))
        self._cue("play_session_start")
        self._emit("session_start", target=total)
        self._render()

        if self.program.is_combo:
            self._schedule_combo()
        else:
            self._schedule_single()

    # -----------------------
    # TRAINING (single)
    # -----------------------

    def _present(self, action: Action) -> None:
        self._action = action
        self._cue("play_punch" if action is Action.PUNCH else "play_kick")
        self._emit("stimulus", action=action.value)
        self._render()

    def _schedule_single(self) -> None:
        self._after(self.generator.interval(self.program.difficulty), self._fire_single)

    def _fire_single(self) -> None:
        gen = self._gen
        self._present(self.generator.action(self.program.mode))
        if gen == self._gen:
            self._after(SINGLE_DISPLAY_MS, self._single_done)

    def _single_done(self) -> None:
        gen = self._gen
        self._action = None
        self._set(st.record_hit(self._state))
        self._render()
        if gen != self._gen:
            return

        s = self._state
        target = s.session_total_hits or 0
        if s.hits_completed >= target:
            self._finish_session()
        elif self._mid_rest_due():
            self._enter_mid_rest()
        else:
            self._schedule_single()

    # -----------------------
    # MID_REST
    # -----------------------

    def _mid_rest_due(self) -> bool:
        s = self._state
        target = s.session_total_hits or 0
        return (
            self.program.mid_rest
            and not s.mid_rest_taken
            and target >= 2
            and s.hits_completed >= target // 2
        )

    def _enter_mid_rest(self) -> None:
        self._clear_timers()
        self._action = None
        self._set(st.enter_mid_rest(self._state))
        self._render()
        self._after(MID_REST_MS, self._resume_training)

    def _resume_training(self) -> None:
        self._clear_timers()
        self._set(st.resume_training(self._state))
        self._render()
        self._schedule_single()

    # -----------------------
    # TRAINING (combo)
    # -----------------------

    def _schedule_combo(self) -> None:
        combo = self.program.difficulty.combo
        rest = 0 if self._state.combos_completed == 0 else self.generator.combo_rest(combo)
        self._after(rest, self._fire_combo)

    def _fire_combo(self) -> None:
        plan = self.generator.combo(self.program.difficulty.combo)
        self._emit("combo_start", size=plan.size, offsets=list(plan.offsets), span=plan.span)
        offsets = plan.offsets
        last = len(offsets) - 1
        for i, offset in enumerate(offsets):
            if offset == 0 and i == 0:
                continue
            self._after(offset, lambda i=i: self._fire_strike(i == last))
        self._fire_strike(last == 0)

    def _fire_strike(self, is_last: bool) -> None:
        gen = self._gen
        self._strike_id += 1
        strike = self._strike_id
        self._present(self.generator.action(self.program.mode))
        if gen == self._gen:
            self._after(COMBO_DISPLAY_MS, lambda: self._strike_done(strike, is_last))

    def _strike_done(self, strike: int, is_last: bool) -> None:
        gen = self._gen
        # a later strike may already be on screen; leave it there
        if strike == self._strike_id:
            self._action = None
        self._set(st.record_hit(self._state))
        self._render()
        if gen == self._gen and is_last:
            self._combo_done()

    def _combo_done(self) -> None:
        gen = self._gen
        self._set(st.record_combo(self._state))
        self._emit("combo_end")
        self._render()
        if gen != self._gen:
            return
        if self._state.combos_completed >= self.program.difficulty.combo.total_combos:
            self._finish_session()
        else:
            self._schedule_combo()

    # -----------------------
    # SESSION_END / BREAK / COMPLETE
    # -----------------------

    def _record(self, aborted: bool) -> Optional[SessionHistoryEntry]:
        s = self._state
        p = self.program
        start = s.session_start_ms if s.session_start_ms is not None else self.now
        entry = SessionHistoryEntry(
            mode=p.mode.value,
            training_type=p.training_type.value,
            difficulty_id=p.difficulty.id,
            hits_completed=s.hits_completed,
            # combo mode has no preset hit target, so the fired count stands in
            total_hits=s.hits_completed if p.is_combo else (s.session_total_hits or 0),
            combos_completed=s.combos_completed,
            total_combos=p.difficulty.combo.total_combos if p.is_combo else None,
            duration_ms=max(0, self.now - start),
            session_number=s.current_session,
            total_sessions=p.number_of_sessions,
            aborted=aborted,
        )
        if self.history is not None:
            try:
                entry = self.history.record(entry)
            except Exception as e:
                log.warning("Could not save session history: %r", e)
        self.run_entries.append(entry)
        self._emit("recorded", aborted=aborted, duration_ms=entry.duration_ms)
        return entry

    def _finish_session(self) -> None:
        self._clear_timers()
        gen = self._gen
        self._action = None
        self._set(st.end_session(self._state, self.now))
        self._cue("play_session_end")
        self._record(aborted=False)
        self._emit("session_end")
        self._render()
        if gen != self._gen:
            return

        if self._state.current_session < self.program.number_of_sessions:
            self._begin_break()
        else:
            self._complete()

    def _begin_break(self) -> None:
        self._clear_timers()
        rest = self.program.difficulty.rest
        seconds = int(round(rest.break_duration / 1000)) if rest.enabled else 0
        self._set(st.begin_break(self._state, seconds))
        self._warning_played = False

        if seconds <= 0:
            self._next_session()
            return

        self._render()
        self._break_tick()

    def _break_tick(self) -> None:
        remaining = self._state.break_remaining_s
        if remaining <= 0:
            self._next_session()
            return
        if remaining == BREAK_WARNING_S and not self._warning_played:
            self._warning_played = True
            self._cue("play_warning")
            self._emit("break_warning")
        self._after(1000, self._break_step)

    def _break_step(self) -> None:
        gen = self._gen
        self._set(st.tick_break(self._state))
        self._render()
        if gen == self._gen:
            self._break_tick()

    def _next_session(self) -> None:
        self._clear_timers()
        self._set(st.next_session(self._state))
        self._countdown_tick()

    def _complete(self) -> None:
        self._clear_timers()
        self._action = None
        try:
            self._set(st.complete(self._state, self.now))
        except InvalidTransitionError:
            log.exception("Cannot complete from %s", self._state.phase.value)
            return
        self._hold(False)
        self._emit("complete")
        self._render()
