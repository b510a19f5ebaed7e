import pytest

from combat_lab.config import CombatRules
from combat_lab.errors import ConfigurationError, UnknownStatError
from combat_lab.rng import lcg, seeded
from combat_lab.simulation import CombatConfig, CombatSimulator, EntityStats, SuddenDeathRules
from combat_lab.spells import Spell
from combat_lab.stats import StatBlock


def config(a=None, b=None, **kwargs):
    return CombatConfig(
        entity1=EntityStats(name="Entity 1", stats=a or {}),
        entity2=EntityStats(name="Entity 2", stats=b or {}),
        **kwargs,
    )


def test_unset_fields_inherit_the_baseline():
    entity = EntityStats(name="Brute", stats={"hp": 200, "attack": 30, "defense": 5, "critChance": 10})
    block = entity.to_stat_block(StatBlock())
    assert block.hp == 200
    assert block.damage == 30
    assert block.armor == 5
    assert block.crit_chance == 10
    assert block.txc == 25
    assert block.agility == 50
    assert block.config_flat_first is True


def test_unknown_stat_is_a_configuration_error():
    with pytest.raises(UnknownStatError):
        EntityStats(name="x", stats={"mana": 10}).to_stat_block()


def test_entity_descriptor_from_flat_dict():
    entity = EntityStats.from_dict(
        {"name": "Mage", "hp": 120, "spells": [{"name": "Hex", "type": "debuff", "targetStat": "armor", "effect": 10, "eco": 2}]}
    )
    assert entity.name == "Mage"
    assert entity.stats == {"hp": 120}
    assert entity.spells[0].target_stat == "armor"


def test_non_positive_turn_limit_rejected():
    with pytest.raises(ConfigurationError):
        config(turn_limit=0)


def test_same_seed_gives_identical_results():
    wizard = Spell(name="Focus", kind="buff", target_stat="txc", effect=20, duration=2)
    cfg = CombatConfig(
        entity1=EntityStats(name="Entity 1", stats={"damage": 30}, spells=(wizard,)),
        entity2=EntityStats(name="Entity 2", stats={"armor": 20, "lifesteal": 10}),
        enable_detailed_logging=True,
    )
    first = CombatSimulator(lcg(12345)).simulate(cfg)
    second = CombatSimulator(lcg(12345)).simulate(cfg)

    assert first == second
    assert first.to_dict() == second.to_dict()


def test_result_is_internally_consistent():
    result = CombatSimulator(seeded(99)).simulate(config(enable_detailed_logging=True))

    assert result.winner in ("entity1", "entity2", "draw")
    assert 1 <= result.turns <= 100
    loser = {"entity1": "entity2", "entity2": "entity1"}.get(result.winner)
    if loser is not None:
        assert result.hp_remaining[loser] == 0
        assert result.damage_dealt[result.winner] == 150
        assert result.overkill[result.winner] >= 0
    for side in ("entity1", "entity2"):
        assert 0 <= result.hit_rate[side] <= 1
        assert 0 <= result.crit_rate[side] <= 1
        assert len(result.initiative_rolls[side]) >= result.turns - 1
        assert result.damage_dealt[side] >= 0
    assert result.turn_by_turn_log
    assert all(t.attacker in ("entity1", "entity2") for t in result.turn_by_turn_log)
    assert result.events


def test_detailed_logging_is_opt_in():
    result = CombatSimulator(seeded(1)).simulate(config())
    assert result.turn_by_turn_log is None
    assert result.events is None


def test_turn_limit_exhaustion_is_a_draw():
    # Both sides can only land 1-damage hits on a 10k HP pool
    tank = {"hp": 10000, "armor": 10**6, "damage": 1}
    result = CombatSimulator(seeded(3)).simulate(config(tank, tank, turn_limit=5))

    assert result.winner == "draw"
    assert result.turns == 5
    assert result.timed_out is True
    assert result.overkill == {"entity1": 0, "entity2": 0}


def test_timeout_tiebreak_prefers_remaining_hp():
    tough = {"hp": 10000, "armor": 10**6, "damage": 1}
    tougher = dict(tough, hp=20000)
    result = CombatSimulator(seeded(3)).simulate(config(tough, tougher, turn_limit=5, resolve_timeouts=True))
    assert result.winner == "entity2"


def test_hit_rate_soft_floor_when_no_attacks():
    # Entity 1 one-shots before Entity 2 can act, so Entity 2 never attacks
    result = CombatSimulator(lambda: 0.0).simulate(config({"damage": 1000, "agility": 100}, {}))
    assert result.winner == "entity1"
    assert result.hit_rate["entity2"] == 0
    assert result.crit_rate["entity2"] == 0


def test_overkill_follows_damage_dealt_from_hp_deltas():
    # A 2000-damage crit on a 150 HP target still only removes 150 HP
    result = CombatSimulator(lambda: 0.0).simulate(config({"damage": 1000, "agility": 100}, {}))
    assert result.damage_dealt["entity1"] == 150
    assert result.overkill["entity1"] == max(0, result.damage_dealt["entity1"] - 150)
    assert result.overkill["entity2"] == 0


def test_sudden_death_raises_damage_over_time():
    rules = SuddenDeathRules(start_turn=3, damage_multiplier_per_turn=0.5, max_damage_multiplier=2.0)
    assert rules.multiplier(2) == 1.0
    assert rules.multiplier(3) == 1.5
    assert rules.multiplier(4) == 2.0
    assert rules.multiplier(10) == 2.0
    assert not SuddenDeathRules(start_turn=0, damage_multiplier_per_turn=1.0).active


def test_sudden_death_shortens_combats_without_touching_baseline():
    baseline = CombatRules().baseline
    long_fight = {"hp": 2000}
    plain = CombatSimulator(lcg(5)).simulate(config(long_fight, long_fight))
    escalated = CombatSimulator(lcg(5)).simulate(
        config(long_fight, long_fight, sudden_death=SuddenDeathRules(start_turn=2, damage_multiplier_per_turn=1.0))
    )

    assert escalated.turns < plain.turns
    assert CombatRules().baseline == baseline
    assert baseline.damage == 25


def test_simulator_requires_an_rng():
    with pytest.raises(ValueError):
        CombatSimulator(None)
