from __future__ import annotations

import dataclasses
import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Union

from ..stats import StatBlock, validate_stat_key

logger = logging.getLogger(__name__)


class EffectType(str, Enum):
    STUN = "stun"
    ROOT = "root"
    BUFF = "buff"
    DEBUFF = "debuff"
    DOT = "dot"
    HOT = "hot"
    SHIELD = "shield"


@dataclass(frozen=True)
class StunEffect:
    """Disables every action while active."""

    id: str
    duration: int
    name: str = "Stunned"
    source: Optional[str] = None
    stackable: bool = False
    current_stacks: int = 1
    type: EffectType = field(default=EffectType.STUN, init=False)


@dataclass(frozen=True)
class RootEffect:
    """Prevents movement only."""

    id: str
    duration: int
    name: str = "Rooted"
    source: Optional[str] = None
    stackable: bool = False
    current_stacks: int = 1
    type: EffectType = field(default=EffectType.ROOT, init=False)


@dataclass(frozen=True)
class StatModifierEffect:
    """Additive stat changes; debuffs carry negative values."""

    id: str
    type: EffectType
    duration: int
    stat_changes: Mapping[str, float]
    name: str = "Buff"
    source: Optional[str] = None
    stackable: bool = False
    current_stacks: int = 1

    def __post_init__(self) -> None:
        kind = EffectType(self.type)
        if kind not in (EffectType.BUFF, EffectType.DEBUFF):
            raise ValueError(f"StatModifierEffect must be a buff or debuff, got {kind.value}")
        object.__setattr__(self, "type", kind)
        object.__setattr__(
            self, "stat_changes", {validate_stat_key(k): v for k, v in self.stat_changes.items()}
        )


@dataclass(frozen=True)
class OverTimeEffect:
    """Damage (dot) or healing (hot) applied once per round."""

    id: str
    type: EffectType
    duration: int
    tick_damage: float
    name: str = "DoT"
    source: Optional[str] = None
    stackable: bool = True
    current_stacks: int = 1

    def __post_init__(self) -> None:
        kind = EffectType(self.type)
        if kind not in (EffectType.DOT, EffectType.HOT):
            raise ValueError(f"OverTimeEffect must be a dot or hot, got {kind.value}")
        object.__setattr__(self, "type", kind)


@dataclass(frozen=True)
class ShieldEffect:
    """Temporary HP; absorbed at damage time, inert during processing."""

    id: str
    duration: int
    shield_amount: float
    name: str = "Shield"
    source: Optional[str] = None
    stackable: bool = False
    current_stacks: int = 1
    type: EffectType = field(default=EffectType.SHIELD, init=False)


StatusEffect = Union[StunEffect, RootEffect, StatModifierEffect, OverTimeEffect, ShieldEffect]


@dataclass
class EffectProcessResult:
    """What a character may do this round and what its effects deal/heal."""

    can_act: bool = True
    can_move: bool = True
    can_cast: bool = True
    damage_received: float = 0.0
    healing_received: float = 0.0
    modified_stats: Dict[str, float] = field(default_factory=dict)


@dataclass
class EffectedCharacter:
    """A character as seen by the status effect manager."""

    id: str
    name: str
    base_stats: StatBlock
    status_effects: List[StatusEffect] = field(default_factory=list)


class StatusEffectManager:
    """Applies, processes and expires status effects on a character.

    Per round, effects are first processed (a read-only pass reporting
    actionability, DoT/HoT totals and additive stat changes), then ticked
    (durations -1, expired entries removed). Multiplicative modifiers are not
    handled here; the round resolver layers them on via the buff module.
    """

    def apply_effect(self, character: EffectedCharacter, effect: StatusEffect) -> bool:
        """Apply ``effect``, merging with an existing (type, name) match.

        Non-stackable matches keep the longer duration; stackable matches also
        gain a stack. Always returns True (nothing blocks an effect yet).
        """
        for index, existing in enumerate(character.status_effects):
            if existing.type is effect.type and existing.name == effect.name:
                duration = max(existing.duration, effect.duration)
                if effect.stackable:
                    merged = dataclasses.replace(
                        existing, duration=duration, current_stacks=existing.current_stacks + 1
                    )
                else:
                    merged = dataclasses.replace(existing, duration=duration)
                character.status_effects[index] = merged
                logger.debug("Refreshed %s on %s (duration=%d)", effect.name, character.name, duration)
                return True

        character.status_effects.append(effect)
        logger.debug("Applied %s (%s) to %s", effect.name, effect.type.value, character.name)
        return True

    def process_effects(self, character: EffectedCharacter) -> EffectProcessResult:
        result = EffectProcessResult()
        for effect in character.status_effects:
            if isinstance(effect, StunEffect):
                result.can_act = False
                result.can_move = False
                result.can_cast = False
            elif isinstance(effect, RootEffect):
                result.can_move = False
            elif isinstance(effect, StatModifierEffect):
                for stat, value in effect.stat_changes.items():
                    result.modified_stats[stat] = (
                        result.modified_stats.get(stat, 0.0) + value * effect.current_stacks
                    )
            elif isinstance(effect, OverTimeEffect):
                amount = effect.tick_damage * effect.current_stacks
                if effect.type is EffectType.DOT:
                    result.damage_received += amount
                else:
                    result.healing_received += amount
            elif isinstance(effect, ShieldEffect):
                # Absorbed at damage-application time
                pass
            else:
                raise TypeError(f"Unhandled status effect {effect!r}")
        return result

    def tick_duration(self, character: EffectedCharacter) -> None:
        ticked = (dataclasses.replace(e, duration=e.duration - 1) for e in character.status_effects)
        character.status_effects = [e for e in ticked if e.duration > 0]

    def remove_effects_by_type(self, character: EffectedCharacter, effect_type: EffectType) -> None:
        character.status_effects = [e for e in character.status_effects if e.type is not EffectType(effect_type)]

    def remove_effect_by_id(self, character: EffectedCharacter, effect_id: str) -> None:
        character.status_effects = [e for e in character.status_effects if e.id != effect_id]

    def get_effective_stats(self, character: EffectedCharacter) -> StatBlock:
        """Base stats with every buff/debuff delta summed in (additive only)."""
        deltas: Dict[str, float] = {}
        for effect in character.status_effects:
            if isinstance(effect, StatModifierEffect):
                for stat, value in effect.stat_changes.items():
                    deltas[stat] = deltas.get(stat, 0.0) + value * effect.current_stacks
        if not deltas:
            return character.base_stats
        base = character.base_stats
        return base.replace(**{stat: getattr(base, stat) + delta for stat, delta in deltas.items()})

    def has_effect(self, character: EffectedCharacter, effect_type: EffectType) -> bool:
        return any(e.type is EffectType(effect_type) for e in character.status_effects)

    def get_effects_by_type(self, character: EffectedCharacter, effect_type: EffectType) -> List[StatusEffect]:
        return [e for e in character.status_effects if e.type is EffectType(effect_type)]


class StatusEffectFactory:
    """Builds common effects with ids unique to this factory instance."""

    def __init__(self) -> None:
        self._ids: Iterator[int] = itertools.count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}_{next(self._ids)}"

    def create_stun(self, duration: int, source: Optional[str] = None) -> StunEffect:
        return StunEffect(id=self._next_id("stun"), duration=duration, source=source)

    def create_root(self, duration: int, source: Optional[str] = None) -> RootEffect:
        return RootEffect(id=self._next_id("root"), duration=duration, source=source)

    def create_buff(
        self, stat_changes: Mapping[str, float], duration: int, name: str = "Buff", source: Optional[str] = None
    ) -> StatModifierEffect:
        return StatModifierEffect(
            id=self._next_id("buff"),
            type=EffectType.BUFF,
            duration=duration,
            stat_changes=stat_changes,
            name=name,
            source=source,
        )

    def create_debuff(
        self, stat_changes: Mapping[str, float], duration: int, name: str = "Debuff", source: Optional[str] = None
    ) -> StatModifierEffect:
        return StatModifierEffect(
            id=self._next_id("debuff"),
            type=EffectType.DEBUFF,
            duration=duration,
            stat_changes=stat_changes,
            name=name,
            source=source,
        )

    def create_dot(self, tick_damage: float, duration: int, name: str = "DoT", source: Optional[str] = None) -> OverTimeEffect:
        return OverTimeEffect(
            id=self._next_id("dot"), type=EffectType.DOT, duration=duration, tick_damage=tick_damage, name=name, source=source
        )

    def create_hot(self, tick_healing: float, duration: int, name: str = "HoT", source: Optional[str] = None) -> OverTimeEffect:
        return OverTimeEffect(
            id=self._next_id("hot"), type=EffectType.HOT, duration=duration, tick_damage=tick_healing, name=name, source=source
        )

    def create_shield(self, amount: float, duration: int, name: str = "Shield", source: Optional[str] = None) -> ShieldEffect:
        return ShieldEffect(id=self._next_id("shield"), duration=duration, shield_amount=amount, name=name, source=source)


__all__ = [
    "EffectType",
    "StunEffect",
    "RootEffect",
    "StatModifierEffect",
    "OverTimeEffect",
    "ShieldEffect",
    "StatusEffect",
    "EffectProcessResult",
    "EffectedCharacter",
    "StatusEffectManager",
    "StatusEffectFactory",
]
