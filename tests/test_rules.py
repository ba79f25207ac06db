import pytest

from skirmish.engine import dice
from skirmish.engine.rules import (
    ability_modifier,
    accrue_action_points,
    consume_action_point,
    save_dc,
    score_modifier,
)

from regression_suite import ScriptedRandom, make_entity


def test_roll_sums_each_die():
    r = ScriptedRandom(ints=[3, 5])
    assert dice.roll("2d6", r) == 8
    assert dice.roll("d20", ScriptedRandom(ints=[17])) == 17


@pytest.mark.parametrize("expr", ["20", "d", "xd6", "2d", "0d6", "2d0", "d-4"])
def test_roll_rejects_malformed_dice(expr):
    with pytest.raises(ValueError):
        dice.roll(expr, ScriptedRandom())


def test_rng_for_seed_is_reproducible():
    assert dice.rng_for(7).randint(1, 1000) == dice.rng_for(7).randint(1, 1000)


def test_consume_keeps_fractional_accrual():
    assert consume_action_point(2.6) == 1.6
    assert consume_action_point(1.0) == 0.0
    assert consume_action_point(0.4) == 0.0


def test_accrue_caps_at_max():
    assert accrue_action_points(1.0, 3, 2500, 5000) == pytest.approx(1.5)
    assert accrue_action_points(2.9, 3, 5000, 5000) == 3.0
    assert accrue_action_points(2.0, 3, -10, 5000) == 2.0


@pytest.mark.parametrize("score,expected", [(1, -5), (8, -1), (9, -1), (10, 0), (11, 0), (15, 2), (20, 5)])
def test_score_modifier(score, expected):
    assert score_modifier(score) == expected


def test_ability_modifier_falls_back_to_flat_stats():
    wizard = make_entity(ability_scores={"intelligence": 15, "dexterity": 14})
    assert ability_modifier(wizard, "intelligence") == 2
    assert ability_modifier(wizard, "wisdom") == 0

    troll = make_entity(stats={"attack": 15, "defense": 8, "magic_power": 5})
    assert ability_modifier(troll, "strength") == 3
    assert ability_modifier(troll, "dexterity") == 1


def test_save_dc_uses_caster_modifier_and_proficiency():
    wizard = make_entity(ability_scores={"intelligence": 15})
    assert save_dc(wizard, "intelligence", 2) == 8 + 2 + 2
