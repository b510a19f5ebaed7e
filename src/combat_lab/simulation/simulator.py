from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..combat.entities import Combatant
from ..combat.resolver import RoundResolver
from ..combat.state import TEAM_A, TEAM_B, CombatState, create_combat_state
from ..config import CombatRules
from ..rng import RNG
from .types import DRAW, ENTITY1, ENTITY2, CombatConfig, CombatResult, EntityStats, TurnData

logger = logging.getLogger(__name__)


class CombatSimulator:
    """Runs a single 1v1 combat on top of the round resolver.

    Every call builds fresh combatants from ``rules.baseline`` plus the entity
    overrides; nothing is shared between calls except the injected RNG.
    Damage per side is measured from HP deltas around each round, so damage
    over time and shield interactions are counted where they land.
    """

    def __init__(self, rng: RNG, rules: Optional[CombatRules] = None) -> None:
        if rng is None:
            raise ValueError("CombatSimulator needs an explicit RNG")
        self.rng = rng
        self.rules = rules or CombatRules()
        self._resolver = RoundResolver(self.rules)

    @classmethod
    def run(cls, config: CombatConfig, rng: RNG, rules: Optional[CombatRules] = None) -> CombatResult:
        return cls(rng, rules).simulate(config)

    def build_combatant(self, entity_id: str, entity: EntityStats, team: str) -> Combatant:
        block = entity.to_stat_block(self.rules.baseline)
        return Combatant.from_stat_block(entity_id, entity.name or entity_id, team, block, spells=entity.spells)

    def simulate(self, config: CombatConfig) -> CombatResult:
        fighter1 = self.build_combatant(ENTITY1, config.entity1, "A")
        fighter2 = self.build_combatant(ENTITY2, config.entity2, "B")
        base_blocks = {fighter1.id: fighter1.stat_block, fighter2.id: fighter2.stat_block}
        sudden_death = config.sudden_death if config.sudden_death and config.sudden_death.active else None

        state = create_combat_state([fighter1], [fighter2])
        initial_hp = {ENTITY1: fighter1.current_hp, ENTITY2: fighter2.current_hp}
        dealt = {ENTITY1: 0.0, ENTITY2: 0.0}

        while not state.is_finished and state.turn < config.turn_limit:
            if sudden_death is not None:
                multiplier = sudden_death.multiplier(state.turn + 1)
                for fighter in (fighter1, fighter2):
                    base = base_blocks[fighter.id]
                    fighter.stat_block = base.replace(damage=base.damage * multiplier)

            hp_before1 = fighter1.current_hp
            hp_before2 = fighter2.current_hp
            self._resolver.resolve(state, self.rng)

            # Damage taken by one side is damage dealt by the other
            dealt[ENTITY2] += hp_before1 - fighter1.current_hp
            dealt[ENTITY1] += hp_before2 - fighter2.current_hp

        hp_remaining = {ENTITY1: max(0, fighter1.current_hp), ENTITY2: max(0, fighter2.current_hp)}
        overkill = {
            ENTITY1: _overkill(dealt[ENTITY1], initial_hp[ENTITY2], hp_remaining[ENTITY2]),
            ENTITY2: _overkill(dealt[ENTITY2], initial_hp[ENTITY1], hp_remaining[ENTITY1]),
        }

        timed_out = not state.is_finished
        winner = _winner_from_state(state)
        if timed_out and config.resolve_timeouts:
            winner = _break_timeout(hp_remaining, dealt)

        metrics = state.metrics
        ids = {ENTITY1: fighter1.id, ENTITY2: fighter2.id}
        result = CombatResult(
            winner=winner,
            turns=state.turn,
            damage_dealt=dealt,
            hp_remaining=hp_remaining,
            overkill=overkill,
            initiative_rolls={side: list(metrics.initiative_rolls.get(eid, [])) for side, eid in ids.items()},
            hit_rate={
                side: metrics.hits.get(eid, 0) / max(1, metrics.attacks.get(eid, 0)) for side, eid in ids.items()
            },
            crit_rate={
                side: metrics.crits.get(eid, 0) / max(1, metrics.hits.get(eid, 0)) for side, eid in ids.items()
            },
            status_effects_applied={side: metrics.status_applied.get(eid, 0) for side, eid in ids.items()},
            turns_stunned={side: metrics.turns_stunned.get(eid, 0) for side, eid in ids.items()},
            timed_out=timed_out,
            turn_by_turn_log=extract_turn_log(state) if config.enable_detailed_logging else None,
            events=state.log.events() if config.enable_detailed_logging else None,
        )
        logger.debug("Combat %s vs %s -> %s after %d turns", fighter1.name, fighter2.name, winner, state.turn)
        return result


def _overkill(total_dealt: float, victim_initial_hp: float, victim_hp_left: float) -> float:
    if victim_hp_left == 0 and total_dealt > victim_initial_hp:
        return total_dealt - victim_initial_hp
    return 0


def _winner_from_state(state: CombatState) -> str:
    if state.winner == TEAM_A:
        return ENTITY1
    if state.winner == TEAM_B:
        return ENTITY2
    return DRAW


def _break_timeout(hp_remaining: Dict[str, float], dealt: Dict[str, float]) -> str:
    for values in (hp_remaining, dealt):
        if values[ENTITY1] > values[ENTITY2]:
            return ENTITY1
        if values[ENTITY2] > values[ENTITY1]:
            return ENTITY2
    return DRAW


def extract_turn_log(state: CombatState) -> List[TurnData]:
    """Turn-by-turn attack records, read from the structured combat log."""
    turns: List[TurnData] = []
    for event in state.log.events("attack"):
        data = event.data or {}
        turns.append(
            TurnData(
                turn_number=event.turn,
                attacker=data["attacker"],
                defender=data["defender"],
                damage_dealt=data["damage"],
                defender_hp_remaining=data["hp_after"],
            )
        )
    return turns


__all__ = ["CombatSimulator", "extract_turn_log"]
