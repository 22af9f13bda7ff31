import random
from collections import Counter

import pytest

from combatreflex.core.difficulty import ComboSettings, Range, get_builtin
from combatreflex.training.program import Action, Mode, TrainingProgram, clamp_sessions
from combatreflex.training.stimulus import ComboPlan, StimulusGenerator


@pytest.fixture
def gen():
    return StimulusGenerator(random.Random(1234))


def test_single_interval_stays_in_range(gen):
    normal = get_builtin("normal")
    draws = [gen.interval(normal) for _ in range(1000)]
    assert all(isinstance(v, int) for v in draws)
    assert all(1000 <= v <= 1800 for v in draws)
    # both ends reachable
    assert min(draws) < 1050 and max(draws) > 1750


def test_restricted_modes_are_deterministic(gen):
    assert {gen.action(Mode.PUNCHES) for _ in range(50)} == {Action.PUNCH}
    assert {gen.action("kicks") for _ in range(50)} == {Action.KICK}


def test_both_mode_is_roughly_even(gen):
    counts = Counter(gen.action(Mode.BOTH) for _ in range(2000))
    assert set(counts) == {Action.PUNCH, Action.KICK}
    assert 800 < counts[Action.PUNCH] < 1200


def test_combo_plan_shape(gen):
    combo = ComboSettings(
        combo_size=Range(3, 3),
        strike_interval=Range(100, 100),
        rest_between_combos=Range(500, 900),
        total_combos=5,
    )
    plan = gen.combo(combo)
    assert plan.size == 3
    assert plan.gaps == (100, 100)
    assert plan.offsets == (0, 100, 200)
    assert plan.span == 200
    assert 500 <= gen.combo_rest(combo) <= 900


def test_combo_sizes_cover_range(gen):
    combo = get_builtin("very-hard").combo
    sizes = {gen.combo(combo).size for _ in range(500)}
    assert sizes == {1, 2, 3, 4, 5}


def test_single_strike_plan():
    plan = ComboPlan(size=1, gaps=())
    assert plan.offsets == (0,)
    assert plan.span == 0


def test_session_hits_from_degenerate_range(gen):
    assert gen.session_hits(get_builtin("hard")) == 68


def test_seeded_generators_repeat():
    a = StimulusGenerator(random.Random(7))
    b = StimulusGenerator(random.Random(7))
    normal = get_builtin("normal")
    assert [a.interval(normal) for _ in range(20)] == [b.interval(normal) for _ in range(20)]


@pytest.mark.parametrize("raw, expected", [(0, 1), (1, 1), (3, 3), (9, 4), ("2", 2), ("x", 1), (None, 1)])
def test_clamp_sessions(raw, expected):
    assert clamp_sessions(raw) == expected


def test_program_coerces_values():
    p = TrainingProgram(mode="kicks", training_type="combo", number_of_sessions=7,
                        difficulty=get_builtin("easy"))
    assert p.mode is Mode.KICKS
    assert p.is_combo
    assert p.number_of_sessions == 4


def test_program_rejects_unknown_mode():
    with pytest.raises(ValueError):
        TrainingProgram(mode="elbows", training_type="single", number_of_sessions=1,
                        difficulty=get_builtin("easy"))
