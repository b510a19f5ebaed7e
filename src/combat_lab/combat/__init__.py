"""
Combat package for combat-lab.

Contains:
- Combatants and per-combat state (effects, metrics, append-only log).
- The status effect manager (stun, root, additive buffs/debuffs, dot/hot, shields).
- The round resolver: regen, effects, initiative, actions, win check.
"""

from .entities import Combatant, LegacyProfile
from .log import CombatEvent, CombatLog
from .resolver import AttackOutcome, RoundResolver, resolve_combat_round
from .state import DRAW, TEAM_A, TEAM_B, CombatMetrics, CombatState, EffectSet, create_combat_state
from .status_effects import (
    EffectProcessResult,
    EffectType,
    EffectedCharacter,
    StatusEffectFactory,
    StatusEffectManager,
)

__all__ = [
    "Combatant",
    "LegacyProfile",
    "CombatEvent",
    "CombatLog",
    "AttackOutcome",
    "RoundResolver",
    "resolve_combat_round",
    "TEAM_A",
    "TEAM_B",
    "DRAW",
    "CombatMetrics",
    "CombatState",
    "EffectSet",
    "create_combat_state",
    "EffectProcessResult",
    "EffectType",
    "EffectedCharacter",
    "StatusEffectFactory",
    "StatusEffectManager",
]
