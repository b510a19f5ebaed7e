from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..modules import buffs as buff_module
from ..modules import dot as dot_module
from ..modules.buffs import Buff
from ..modules.dot import PeriodicEffect
from .entities import Combatant
from .log import CombatLog
from .status_effects import EffectedCharacter, ShieldEffect, StatusEffect, StatusEffectManager

logger = logging.getLogger(__name__)

TEAM_A = "teamA"
TEAM_B = "teamB"
DRAW = "draw"


@dataclass
class EffectSet:
    """Everything currently affecting one combatant.

    - character: status effects (stun, root, additive buffs/debuffs, dot/hot).
    - buffs: buff-module entries (multiplicative spell modifiers and shields).
    - periodic: stack-mode aware DoT/HoT instances.
    """

    character: EffectedCharacter
    buffs: List[Buff] = field(default_factory=list)
    periodic: List[PeriodicEffect] = field(default_factory=list)

    @property
    def statuses(self) -> List[StatusEffect]:
        return self.character.status_effects

    def __len__(self) -> int:
        return len(self.character.status_effects) + len(self.buffs) + len(self.periodic)


@dataclass
class CombatMetrics:
    initiative_rolls: Dict[str, List[float]] = field(default_factory=dict)
    attacks: Dict[str, int] = field(default_factory=dict)
    hits: Dict[str, int] = field(default_factory=dict)
    crits: Dict[str, int] = field(default_factory=dict)
    status_applied: Dict[str, int] = field(default_factory=dict)
    turns_stunned: Dict[str, int] = field(default_factory=dict)

    def register(self, entity_id: str) -> None:
        self.initiative_rolls.setdefault(entity_id, [])
        for counter in (self.attacks, self.hits, self.crits, self.status_applied, self.turns_stunned):
            counter.setdefault(entity_id, 0)

    @staticmethod
    def bump(counter: Dict[str, int], entity_id: str, amount: int = 1) -> None:
        counter[entity_id] = counter.get(entity_id, 0) + amount


@dataclass
class CombatState:
    """State of exactly one combat. Never shared between simulations."""

    team_a: List[Combatant]
    team_b: List[Combatant]
    turn: int = 0
    log: CombatLog = field(default_factory=CombatLog)
    effects: Dict[str, EffectSet] = field(default_factory=dict)
    is_finished: bool = False
    winner: Optional[str] = None
    metrics: CombatMetrics = field(default_factory=CombatMetrics)
    effect_manager: StatusEffectManager = field(default_factory=StatusEffectManager, repr=False, compare=False)

    def __post_init__(self) -> None:
        ids = [c.id for c in self.combatants]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Combatant ids must be unique within a combat: {ids}")
        for combatant in self.combatants:
            self.metrics.register(combatant.id)

    @property
    def combatants(self) -> List[Combatant]:
        return [*self.team_a, *self.team_b]

    def team_of(self, combatant: Combatant) -> List[Combatant]:
        return self.team_a if combatant.team == "A" else self.team_b

    def enemies_of(self, combatant: Combatant) -> List[Combatant]:
        return self.team_b if combatant.team == "A" else self.team_a

    @staticmethod
    def living(team: Sequence[Combatant]) -> List[Combatant]:
        return [c for c in team if c.is_alive]

    def effects_for(self, combatant: Combatant) -> EffectSet:
        entry = self.effects.get(combatant.id)
        if entry is None:
            base = combatant.stat_block
            entry = EffectSet(character=EffectedCharacter(id=combatant.id, name=combatant.name, base_stats=base))
            self.effects[combatant.id] = entry
        return entry

    def apply_status(self, target: Combatant, effect: StatusEffect, applied_by: Optional[str] = None) -> None:
        """Apply a status effect; shields become buff-module shields so they absorb damage."""
        entry = self.effects_for(target)
        if isinstance(effect, ShieldEffect):
            entry.buffs = buff_module.add_buff(
                entry.buffs,
                buff_module.shield(effect.shield_amount, effect.duration, source=effect.source or target.id, id=effect.id),
            )
        else:
            self.effect_manager.apply_effect(entry.character, effect)
        if applied_by is not None:
            self.metrics.bump(self.metrics.status_applied, applied_by)

    def apply_buff(self, target: Combatant, buff: Buff, applied_by: Optional[str] = None) -> None:
        entry = self.effects_for(target)
        entry.buffs = buff_module.add_buff(entry.buffs, buff)
        if applied_by is not None:
            self.metrics.bump(self.metrics.status_applied, applied_by)

    def apply_periodic(self, target: Combatant, effect: PeriodicEffect, applied_by: Optional[str] = None) -> None:
        entry = self.effects_for(target)
        entry.periodic = dot_module.add_effect(entry.periodic, effect)
        if applied_by is not None:
            self.metrics.bump(self.metrics.status_applied, applied_by)


def create_combat_state(team_a: Sequence[Combatant], team_b: Sequence[Combatant]) -> CombatState:
    for combatant in team_a:
        combatant.team = "A"
    for combatant in team_b:
        combatant.team = "B"
    return CombatState(team_a=list(team_a), team_b=list(team_b))


__all__ = [
    "TEAM_A",
    "TEAM_B",
    "DRAW",
    "EffectSet",
    "CombatMetrics",
    "CombatState",
    "create_combat_state",
]
