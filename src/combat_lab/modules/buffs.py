"""Buffs, debuffs and shields.

Stat modifiers combine as ``(base + sum(additive)) * prod(1 + value/100)``,
each entry scaled by its stack count. Shields soak damage front-to-back in
list order before HP is touched and are pruned as soon as they are empty.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Mapping, NamedTuple, Optional, Sequence, Union

from ..spells import Spell

logger = logging.getLogger(__name__)

TEMPORARY_FACTOR = 0.6
STATUS_POWER_PER_TURN = 10


class ModifierMode(str, Enum):
    ADDITIVE = "additive"
    MULTIPLICATIVE = "multiplicative"


@dataclass(frozen=True)
class StatModifierBuff:
    id: str
    source: str
    stat: str
    value: float
    duration: int
    mode: ModifierMode = ModifierMode.ADDITIVE
    stackable: bool = False
    current_stacks: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", ModifierMode(self.mode))


@dataclass(frozen=True)
class ShieldBuff:
    id: str
    source: str
    shield_amount: float
    duration: int
    current_shield: Optional[float] = None
    stackable: bool = False
    current_stacks: int = 1

    def __post_init__(self) -> None:
        if self.current_shield is None:
            object.__setattr__(self, "current_shield", self.shield_amount)


@dataclass(frozen=True)
class StatusBuff:
    id: str
    source: str
    status_name: str
    duration: int
    stackable: bool = False
    current_stacks: int = 1


Buff = Union[StatModifierBuff, ShieldBuff, StatusBuff]


class ShieldAbsorption(NamedTuple):
    remaining_damage: float
    updated_buffs: List[Buff]


def apply_stat_modifiers(base_stat: float, buffs: Sequence[Buff], stat_name: str) -> float:
    """Apply every modifier on ``stat_name``: additive sum first, then the multiplicative product."""
    additive = 0.0
    multiplicative = 1.0
    for buff in buffs:
        if not isinstance(buff, StatModifierBuff) or buff.stat != stat_name:
            continue
        value = buff.value * buff.current_stacks
        if buff.mode is ModifierMode.MULTIPLICATIVE:
            multiplicative *= 1 + value / 100
        else:
            additive += value
    return (base_stat + additive) * multiplicative


def tick_durations(buffs: Sequence[Buff]) -> List[Buff]:
    ticked = (dataclasses.replace(b, duration=b.duration - 1) for b in buffs)
    return [b for b in ticked if b.duration > 0]


def add_buff(buffs: Sequence[Buff], new_buff: Buff) -> List[Buff]:
    """Add a buff or re-apply an existing one.

    Non-stackable buffs refresh the duration of the entry with the same id.
    Stackable buffs gain a stack on the entry with the same (source, id) and
    keep the longer duration.
    """
    if not new_buff.stackable:
        for index, existing in enumerate(buffs):
            if existing.id == new_buff.id:
                result = list(buffs)
                result[index] = dataclasses.replace(existing, duration=new_buff.duration)
                return result
        return [*buffs, new_buff]

    for index, existing in enumerate(buffs):
        if existing.source == new_buff.source and existing.id == new_buff.id:
            result = list(buffs)
            result[index] = dataclasses.replace(
                existing,
                current_stacks=existing.current_stacks + 1,
                duration=max(existing.duration, new_buff.duration),
            )
            return result
    return [*buffs, dataclasses.replace(new_buff, current_stacks=1)]


def get_total_shield(buffs: Sequence[Buff]) -> float:
    return sum(b.current_shield for b in buffs if isinstance(b, ShieldBuff))


def apply_damage_to_shields(damage: float, buffs: Sequence[Buff]) -> ShieldAbsorption:
    """Drain shields in list order, returning unabsorbed damage and the pruned list."""
    remaining = damage
    updated: List[Buff] = []
    for buff in buffs:
        if isinstance(buff, ShieldBuff) and remaining > 0:
            absorbed = min(buff.current_shield, remaining)
            remaining -= absorbed
            buff = dataclasses.replace(buff, current_shield=buff.current_shield - absorbed)
        updated.append(buff)
    kept = [b for b in updated if not isinstance(b, ShieldBuff) or b.current_shield > 0]
    if len(kept) != len(updated):
        logger.debug("Depleted %d shield(s)", len(updated) - len(kept))
    return ShieldAbsorption(remaining_damage=remaining, updated_buffs=kept)


def has_status(buffs: Sequence[Buff], status_name: str) -> bool:
    return any(isinstance(b, StatusBuff) and b.status_name == status_name for b in buffs)


def calculate_buff_power(buff: Buff, stat_weights: Mapping[str, float]) -> float:
    """HP-equivalent value of a buff for balancing.

    A temporary stat modifier is worth ``TEMPORARY_FACTOR`` of the permanent stat.
    """
    if isinstance(buff, ShieldBuff):
        return buff.shield_amount * buff.duration
    if isinstance(buff, StatModifierBuff):
        weight = stat_weights.get(buff.stat, 1.0)
        return buff.value * buff.current_stacks * weight * buff.duration * TEMPORARY_FACTOR
    return STATUS_POWER_PER_TURN * buff.duration


def stat_modifier_from_spell(spell: Spell, caster_id: str) -> StatModifierBuff:
    """Turn a cast buff/debuff spell into a multiplicative stat modifier."""
    return StatModifierBuff(
        id=spell.name,
        source=caster_id,
        stat=spell.target_stat,
        value=spell.signed_effect,
        duration=spell.duration,
        mode=ModifierMode.MULTIPLICATIVE,
    )


def shield(amount: float, duration: int, source: str, id: str = "shield") -> ShieldBuff:
    return ShieldBuff(id=id, source=source, shield_amount=amount, duration=duration)


__all__ = [
    "ModifierMode",
    "StatModifierBuff",
    "ShieldBuff",
    "StatusBuff",
    "Buff",
    "ShieldAbsorption",
    "apply_stat_modifiers",
    "tick_durations",
    "add_buff",
    "get_total_shield",
    "apply_damage_to_shields",
    "has_status",
    "calculate_buff_power",
    "stat_modifier_from_spell",
    "shield",
]
