# scripts/simulate_program.py
"""Run a whole program headless on a virtual clock and print every event."""
import argparse
import logging
import random

from combatreflex.core.difficulty import DEFAULT_DIFFICULTY_ID, DIFFICULTY_IDS
from combatreflex.core.logging_utils import setup_logging
from combatreflex.core.profiles import resolve_difficulty
from combatreflex.core.stats import format_time, summarize_run
from combatreflex.training.program import Mode, TrainingProgram, TrainingType
from combatreflex.training.scheduler import SessionScheduler
from combatreflex.training.stimulus import StimulusGenerator


def main():
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("--mode", choices=[m.value for m in Mode], default=Mode.BOTH.value)
    ap.add_argument("--type", choices=[t.value for t in TrainingType], default=TrainingType.SINGLE.value)
    ap.add_argument("--difficulty", choices=DIFFICULTY_IDS, default=DEFAULT_DIFFICULTY_ID)
    ap.add_argument("--sessions", type=int, default=2)
    ap.add_argument("--mid-rest", action="store_true")
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--stop-at", type=int, default=None, help="virtual ms at which to stop")
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args()

    setup_logging(level=args.log_level, add_file=False)

    program = TrainingProgram(
        mode=args.mode,
        training_type=args.type,
        number_of_sessions=args.sessions,
        difficulty=resolve_difficulty(args.difficulty),
        mid_rest=args.mid_rest,
    )
    sch = SessionScheduler(program, generator=StimulusGenerator(random.Random(args.seed)))

    def show(event, payload):
        extra = {k: v for k, v in payload.items() if k not in ("t", "session", "hits", "combos")}
        print(f"{format_time(payload['t'])} {payload['t']:>8}ms  s{payload['session']}  "
              f"hits={payload['hits']:<3} {event:<14} {extra if extra else ''}")

    sch.add_listener(show)
    sch.start()

    if args.stop_at is not None:
        sch.timers.advance_to(args.stop_at)
        sch.stop()
    else:
        sch.timers.run_until_idle()

    s = sch.state
    r = summarize_run(sch.run_entries, s.program_start_ms, s.program_end_ms, program.number_of_sessions)
    print()
    print(f"Total time:      {r.total_time}")
    print(f"Sessions:        {r.sessions_completed}/{r.total_sessions}")
    print(f"Hits:            {r.hits_completed}/{r.expected_hits} ({r.completion_rate}%)")
    print(f"Hits per minute: {r.hits_per_minute}")
    print(f"Average pace:    {r.average_pace}")
    logging.shutdown()


if __name__ == "__main__":
    main()
