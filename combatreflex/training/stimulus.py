from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from combatreflex.core.difficulty import ComboSettings, DifficultyProfile
from combatreflex.training.program import Action, Mode


@dataclass(frozen=True)
class ComboPlan:
    size: int
    gaps: Tuple[int, ...]   # len == size - 1

    @property
    def offsets(self) -> Tuple[int, ...]:
        """Strike times relative to the combo start; first strike at 0."""
        out = [0]
        for g in self.gaps:
            out.append(out[-1] + g)
        return tuple(out)

    @property
    def span(self) -> int:
        return sum(self.gaps)


class StimulusGenerator:
    """
    Per-event random choices. No timing, no side effects beyond the RNG.
    Pass a seeded `random.Random` for reproducible runs.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def action(self, mode: Mode) -> Action:
        mode = Mode(mode)
        if mode is Mode.PUNCHES:
            return Action.PUNCH
        if mode is Mode.KICKS:
            return Action.KICK
        return Action.PUNCH if self.rng.random() < 0.5 else Action.KICK

    def interval(self, difficulty: DifficultyProfile) -> int:
        return difficulty.interval.sample(self.rng)

    def session_hits(self, difficulty: DifficultyProfile) -> int:
        return difficulty.total_hits.sample(self.rng)

    def combo_rest(self, combo: ComboSettings) -> int:
        return combo.rest_between_combos.sample(self.rng)

    def combo(self, combo: ComboSettings) -> ComboPlan:
        size = combo.combo_size.sample(self.rng)
        gaps: List[int] = [combo.strike_interval.sample(self.rng) for _ in range(size - 1)]
        return ComboPlan(size=size, gaps=tuple(gaps))
