# combatreflex/core/difficulty.py
from __future__ import annotations

import random
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


# -----------------------
# Timing constants (ms)
# -----------------------
COUNTDOWN_TICKS = 3
COUNTDOWN_TICK_MS = 1000
COUNTDOWN_SETTLE_MS = 800

SINGLE_DISPLAY_MS = 800
COMBO_DISPLAY_MS = 300

MID_REST_MS = 7000
BREAK_DURATION_MS = 30000
BREAK_WARNING_S = 5

MIN_SESSIONS = 1
MAX_SESSIONS = 4


@dataclass(frozen=True)
class Range:
    min: int
    max: int

    def sample(self, rng: Optional[random.Random] = None) -> int:
        """Uniform integer in [min, max], both ends included."""
        r = rng or random
        if self.min == self.max:
            return int(self.min)
        return r.randint(int(self.min), int(self.max))

    def to_dict(self) -> Dict[str, int]:
        return {"min": int(self.min), "max": int(self.max)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Range":
        return cls(min=int(data["min"]), max=int(data["max"]))


@dataclass(frozen=True)
class ComboSettings:
    combo_size: Range
    strike_interval: Range
    rest_between_combos: Range
    total_combos: int


@dataclass(frozen=True)
class RestSettings:
    enabled: bool = True
    break_duration: int = BREAK_DURATION_MS


@dataclass(frozen=True)
class DifficultyProfile:
    """
    Everything that paces one session.
    - min_interval / max_interval: single-mode gap between hits (ms)
    - total_hits: sampled once per session
    - combo: combo-mode sizing and spacing
    - rest: between-session break
    """
    id: str
    name: str
    min_interval: int
    max_interval: int
    total_hits: Range
    combo: ComboSettings
    rest: RestSettings = field(default_factory=RestSettings)

    @property
    def interval(self) -> Range:
        return Range(self.min_interval, self.max_interval)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DifficultyProfile":
        combo = data["combo"]
        rest = data["rest"]
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            min_interval=int(data["min_interval"]),
            max_interval=int(data["max_interval"]),
            total_hits=Range.from_dict(data["total_hits"]),
            combo=ComboSettings(
                combo_size=Range.from_dict(combo["combo_size"]),
                strike_interval=Range.from_dict(combo["strike_interval"]),
                rest_between_combos=Range.from_dict(combo["rest_between_combos"]),
                total_combos=int(combo["total_combos"]),
            ),
            rest=RestSettings(
                enabled=bool(rest["enabled"]),
                break_duration=int(rest["break_duration"]),
            ),
        )


def _builtin(
    id: str,
    name: str,
    interval: tuple,
    hits: int,
    combo_size: tuple,
    strike_interval: tuple,
    rest_between: tuple,
    total_combos: int,
) -> DifficultyProfile:
    return DifficultyProfile(
        id=id,
        name=name,
        min_interval=interval[0],
        max_interval=interval[1],
        total_hits=Range(hits, hits),
        combo=ComboSettings(
            combo_size=Range(*combo_size),
            strike_interval=Range(*strike_interval),
            rest_between_combos=Range(*rest_between),
            total_combos=total_combos,
        ),
        rest=RestSettings(enabled=True, break_duration=BREAK_DURATION_MS),
    )


DIFFICULTIES: List[DifficultyProfile] = [
    _builtin("very-easy", "Very Easy", (2500, 4000), 18, (1, 2), (600, 800), (5000, 6000), 9),
    _builtin("easy", "Easy", (1500, 2500), 30, (1, 3), (500, 700), (4000, 5000), 12),
    _builtin("normal", "Normal", (1000, 1800), 45, (1, 3), (400, 600), (3000, 4000), 15),
    _builtin("hard", "Hard", (600, 1200), 68, (1, 4), (300, 500), (2000, 3000), 17),
    _builtin("very-hard", "Very Hard", (300, 800), 92, (1, 5), (200, 400), (1500, 2500), 20),
]

DIFFICULTY_IDS = tuple(d.id for d in DIFFICULTIES)
DEFAULT_DIFFICULTY_ID = "normal"


def get_builtin(difficulty_id: str) -> Optional[DifficultyProfile]:
    for d in DIFFICULTIES:
        if d.id == difficulty_id:
            return d
    return None
