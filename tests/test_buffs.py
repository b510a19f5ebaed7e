import pytest

from combat_lab.errors import ConfigurationError
from combat_lab.modules import buffs
from combat_lab.modules.buffs import ModifierMode, ShieldBuff, StatModifierBuff, StatusBuff
from combat_lab.spells import Spell


def modifier(value, mode=ModifierMode.ADDITIVE, stat="damage", id="mod", source="me", duration=3, **kwargs):
    return StatModifierBuff(id=id, source=source, stat=stat, value=value, duration=duration, mode=mode, **kwargs)


def test_additive_then_multiplicative():
    active = [
        modifier(50, ModifierMode.MULTIPLICATIVE, id="rage"),
        modifier(10, id="sharpen"),
        modifier(99, stat="armor", id="unrelated"),
    ]
    assert buffs.apply_stat_modifiers(100, active, "damage") == pytest.approx(165.0)
    assert buffs.apply_stat_modifiers(100, [], "damage") == 100


def test_stacks_scale_modifier_value():
    assert buffs.apply_stat_modifiers(20, [modifier(5, current_stacks=3)], "damage") == 35


def test_spell_becomes_multiplicative_modifier():
    rage = Spell(name="Rage", kind="buff", target_stat="damage", effect=100, duration=2)
    weaken = Spell(name="Weaken", kind="debuff", target_stat="attack", effect=20, duration=2)

    rage_buff = buffs.stat_modifier_from_spell(rage, "hero")
    weaken_buff = buffs.stat_modifier_from_spell(weaken, "villain")

    assert rage_buff.mode is ModifierMode.MULTIPLICATIVE
    assert rage_buff.source == "hero"
    assert buffs.apply_stat_modifiers(100, [rage_buff], "damage") == 200
    assert weaken_buff.stat == "damage"
    assert weaken_buff.value == -20
    assert buffs.apply_stat_modifiers(100, [weaken_buff], "damage") == pytest.approx(80)


def test_spell_validation():
    with pytest.raises(ConfigurationError):
        Spell(name="Fireball", kind="damage", target_stat="damage", effect=10, duration=1)
    with pytest.raises(ConfigurationError):
        Spell(name="Blink", kind="buff", target_stat="teleport", effect=10, duration=1)
    with pytest.raises(ConfigurationError):
        Spell(name="Instant", kind="buff", target_stat="damage", effect=10, duration=0)


def test_spell_descriptor_keys():
    spell = Spell.from_dict({"name": "Hex", "type": "debuff", "targetStat": "armorPen", "effect": 15, "eco": 3})
    assert spell == Spell(name="Hex", kind="debuff", target_stat="armor_pen", effect=15.0, duration=3)


def test_non_stackable_reapplication_refreshes_duration():
    active = buffs.add_buff([], modifier(10, duration=5))
    active = buffs.add_buff(active, modifier(10, duration=2))
    assert len(active) == 1
    assert active[0].duration == 2
    assert active[0].current_stacks == 1


def test_stackable_reapplication_stacks_per_source():
    active = buffs.add_buff([], modifier(10, duration=2, stackable=True))
    active = buffs.add_buff(active, modifier(10, duration=4, stackable=True))
    active = buffs.add_buff(active, modifier(10, duration=1, stackable=True, source="other"))

    assert len(active) == 2
    assert active[0].current_stacks == 2
    assert active[0].duration == 4
    assert active[1].current_stacks == 1


def test_shields_absorb_in_order_and_are_pruned():
    active = [buffs.shield(30, 3, source="a", id="s1"), modifier(10), buffs.shield(50, 3, source="b", id="s2")]
    assert buffs.get_total_shield(active) == 80

    partial = buffs.apply_damage_to_shields(40, active)
    assert partial.remaining_damage == 0
    assert [b.id for b in partial.updated_buffs] == ["mod", "s2"]
    assert partial.updated_buffs[1].current_shield == 40

    overflow = buffs.apply_damage_to_shields(100, active)
    assert overflow.remaining_damage == 20
    assert not any(isinstance(b, ShieldBuff) for b in overflow.updated_buffs)


def test_tick_and_status_queries():
    active = [StatusBuff(id="haste", source="me", status_name="haste", duration=2), modifier(5, duration=1)]
    assert buffs.has_status(active, "haste")
    ticked = buffs.tick_durations(active)
    assert [b.id for b in ticked] == ["haste"]
    assert buffs.tick_durations(ticked) == []


def test_buff_power():
    assert buffs.calculate_buff_power(buffs.shield(50, 3, source="x"), {}) == 150
    assert buffs.calculate_buff_power(modifier(10, duration=2), {"damage": 5}) == pytest.approx(10 * 5 * 2 * 0.6)
    status = StatusBuff(id="s", source="x", status_name="haste", duration=3)
    assert buffs.calculate_buff_power(status, {}) == 30
