"""Pure helpers that turn timestamps and counters into result metrics."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional


def _finite(ms) -> bool:
    try:
        return math.isfinite(float(ms))
    except (TypeError, ValueError):
        return False


def format_time(ms) -> str:
    """150000 -> "02:30". Negative or non-finite input -> "00:00"."""
    if not _finite(ms) or ms < 0:
        return "00:00"
    total_s = int(ms // 1000)
    m, s = divmod(total_s, 60)
    return f"{m:02d}:{s:02d}"


def format_time_detailed(ms) -> str:
    if not _finite(ms) or ms < 0:
        return "00:00.000"
    ms = int(ms)
    total_s, millis = divmod(ms, 1000)
    m, s = divmod(total_s, 60)
    return f"{m:02d}:{s:02d}.{millis:03d}"


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def completion_rate(hits_completed: int, total_hits: int) -> int:
    if total_hits <= 0:
        return 0
    return _round_half_up(hits_completed / total_hits * 100)


def average_pace(hits: int, duration_ms) -> Optional[int]:
    """Average gap between consecutive hits (ms); None when unavailable."""
    if hits <= 1 or not _finite(duration_ms) or duration_ms <= 0:
        return None
    return _round_half_up(duration_ms / (hits - 1))


def format_pace(pace_ms: Optional[int]) -> str:
    if not pace_ms:
        return "N/A"
    return f"{pace_ms / 1000:.2f}s"


def hits_per_minute(hits: int, duration_ms) -> float:
    if hits <= 0 or not _finite(duration_ms) or duration_ms <= 0:
        return 0
    minutes = duration_ms / 60000
    return _round_half_up(hits / minutes * 10) / 10


@dataclass(frozen=True)
class SessionStats:
    duration_ms: int
    duration_formatted: str
    hits_completed: int
    total_hits: int
    completion_rate: int
    average_pace: Optional[int]
    average_pace_formatted: str


def session_stats(start_ms: int, end_ms: int, hits_completed: int, total_hits: int) -> SessionStats:
    duration = end_ms - start_ms
    pace = average_pace(hits_completed, duration)
    return SessionStats(
        duration_ms=duration,
        duration_formatted=format_time(duration),
        hits_completed=hits_completed,
        total_hits=total_hits,
        completion_rate=completion_rate(hits_completed, total_hits),
        average_pace=pace,
        average_pace_formatted=format_pace(pace),
    )


@dataclass(frozen=True)
class RunSummary:
    total_time: str
    duration_ms: int
    sessions_completed: int
    total_sessions: int
    hits_completed: int
    expected_hits: int
    hits_per_minute: float
    average_pace: str
    completion_rate: int


def summarize_run(entries: Iterable, start_ms: Optional[int], end_ms: Optional[int],
                  total_sessions: int = 0) -> RunSummary:
    """
    `entries` are the SessionHistoryEntry items recorded during one run.
    Stopped sessions count toward hits but not toward sessions completed.
    """
    items = list(entries)
    duration = (end_ms - start_ms) if (start_ms is not None and end_ms is not None) else 0
    hits = sum(int(e.hits_completed) for e in items)
    expected = sum(int(e.total_hits) for e in items)
    done = sum(1 for e in items if not e.aborted)

    return RunSummary(
        total_time=format_time(duration),
        duration_ms=duration,
        sessions_completed=done,
        total_sessions=total_sessions,
        hits_completed=hits,
        expected_hits=expected,
        hits_per_minute=hits_per_minute(hits, duration),
        average_pace=format_pace(average_pace(hits, duration)),
        completion_rate=completion_rate(hits, expected),
    )
