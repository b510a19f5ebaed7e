from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..config import CombatRules
from ..modules import buffs as buff_module
from ..modules import dot as dot_module
from ..modules.critical import calculate_critical_damage
from ..modules.hitchance import calculate_hit_chance
from ..modules.initiative import InitiativeCandidate, generate_detailed_rolls
from ..modules.mitigation import calculate_effective_damage
from ..modules.sustain import apply_healing_cap, calculate_lifesteal_heal, calculate_regen_heal
from ..rng import RNG
from ..stats import StatBlock
from .entities import Combatant, LegacyProfile
from .state import DRAW, TEAM_A, TEAM_B, CombatState
from .status_effects import EffectProcessResult

logger = logging.getLogger(__name__)

LEGACY_VARIANCE_LOW = 0.9
LEGACY_VARIANCE_SPREAD = 0.2
LEGACY_CRIT_MULT = 1.5


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class AttackOutcome:
    """What a single basic attack did."""

    attacker: str
    defender: str
    hit: bool
    crit: bool = False
    damage: int = 0
    absorbed: float = 0
    hp_lost: float = 0
    healed: float = 0
    defeated: bool = False


class RoundResolver:
    """Resolves one combat round per call.

    Phases, each applied to every living combatant before the next starts:
      1. regen
      2. status/periodic effect processing (DoT damage, HoT healing, then tick)
      3. initiative roll and ordering
      4. per-actor turn: stun skip, target pick, optional spell cast, else a
         basic attack (hit -> crit -> mitigation -> shields -> lifesteal)
      5. end-of-round win check

    RNG draws happen in a fixed order: one initiative draw per living combatant,
    then per acting combatant: target, [cast check, [spell pick]], hit, [crit].
    Changing that order changes outcomes for a fixed seed.
    """

    def __init__(self, rules: Optional[CombatRules] = None) -> None:
        self.rules = rules or CombatRules()

    # --------------- Public API ---------------

    def resolve(self, state: CombatState, rng: RNG) -> CombatState:
        if state.is_finished:
            return state

        state.turn += 1
        state.log.add(state.turn, "info", f"--- Turn {state.turn} ---")

        self._apply_regen(state)
        process_results = self._process_effects(state)

        for actor in self._roll_initiative(state, rng):
            if not actor.is_alive:
                continue  # died earlier this round

            enemies = state.living(state.enemies_of(actor))
            if not enemies:
                self._finish(state, TEAM_A if actor.team == "A" else TEAM_B)
                return state

            status = process_results.get(actor.id)
            if status is not None and not status.can_act:
                state.metrics.bump(state.metrics.turns_stunned, actor.id)
                state.log.add(state.turn, "stun", f"{actor.name} is stunned!", entity=actor.id)
                continue

            target = enemies[min(len(enemies) - 1, int(rng() * len(enemies)))]
            can_cast = status is None or status.can_cast
            if can_cast and self._try_cast(state, actor, target, rng):
                continue
            self.attack(state, actor, target, rng)

        self._check_end_of_round(state)
        return state

    def current_stats(self, state: CombatState, combatant: Combatant) -> StatBlock:
        """Effective stats: additive status deltas, then buff-module modifiers per stat."""
        entry = state.effects.get(combatant.id)
        if entry is None:
            return combatant.stat_block
        # The combatant may have been handed a fresh block since its effects were created
        entry.character.base_stats = combatant.stat_block
        stats = state.effect_manager.get_effective_stats(entry.character)
        modified = {b.stat for b in entry.buffs if isinstance(b, buff_module.StatModifierBuff)}
        if not modified:
            return stats
        return stats.replace(
            **{stat: buff_module.apply_stat_modifiers(getattr(stats, stat), entry.buffs, stat) for stat in sorted(modified)}
        )

    def attack(self, state: CombatState, actor: Combatant, target: Combatant, rng: RNG) -> AttackOutcome:
        """Resolve a basic attack from ``actor`` on ``target``."""
        state.metrics.bump(state.metrics.attacks, actor.id)
        if actor.stat_block is not None and target.stat_block is not None:
            damage, is_crit = self._stat_block_damage(state, actor, target, rng)
            if damage is None:
                return AttackOutcome(attacker=actor.id, defender=target.id, hit=False)
        else:
            damage, is_crit = self._legacy_damage(actor, target, rng)
            state.metrics.bump(state.metrics.hits, actor.id)

        if is_crit:
            state.metrics.bump(state.metrics.crits, actor.id)
            state.log.add(state.turn, "crit", f"{actor.name} CRITS!", attacker=actor.id)
        return self._apply_hit(state, actor, target, damage, is_crit)

    # --------------- Phases ---------------

    def _apply_regen(self, state: CombatState) -> None:
        for combatant in state.living(state.combatants):
            regen = calculate_regen_heal(combatant.stat_block.regen) if combatant.stat_block is not None else 0
            if regen <= 0:
                continue
            healed = combatant.heal(apply_healing_cap(combatant.current_hp, regen, combatant.max_hp))
            if healed:
                state.log.add(
                    state.turn,
                    "regen",
                    f"{combatant.name} regenerates {healed:g} HP.",
                    entity=combatant.id,
                    amount=healed,
                )

    def _process_effects(self, state: CombatState) -> Dict[str, EffectProcessResult]:
        results: Dict[str, EffectProcessResult] = {}
        manager = state.effect_manager
        for combatant in state.living(state.combatants):
            entry = state.effects.get(combatant.id)
            if entry is None:
                continue

            result = manager.process_effects(entry.character)
            periodic = dot_module.calculate_total_per_turn(entry.periodic)
            damage = abs(result.damage_received) + periodic.damage
            healing = result.healing_received + periodic.heal

            if damage > 0:
                lost = combatant.take_damage(damage)
                state.log.add(
                    state.turn,
                    "dot",
                    f"{combatant.name} takes {lost:g} damage over time. ({combatant.current_hp:g}/{combatant.max_hp:g} HP left)",
                    entity=combatant.id,
                    amount=lost,
                )
            if healing > 0 and combatant.is_alive:
                healed = combatant.heal(healing)
                state.log.add(
                    state.turn,
                    "hot",
                    f"{combatant.name} heals {healed:g} HP over time.",
                    entity=combatant.id,
                    amount=healed,
                )

            manager.tick_duration(entry.character)
            entry.buffs = buff_module.tick_durations(entry.buffs)
            entry.periodic = dot_module.tick_durations(entry.periodic)
            results[combatant.id] = result

            if not combatant.is_alive:
                state.log.add(state.turn, "death", f"{combatant.name} dies!", entity=combatant.id)
        return results

    def _roll_initiative(self, state: CombatState, rng: RNG) -> List[Combatant]:
        living = state.living(state.combatants)
        by_id = {c.id: c for c in living}
        legacy_speed = self.rules.initiative.legacy_speed
        candidates = [InitiativeCandidate(id=c.id, agility=c.agility(legacy_speed)) for c in living]
        rolls = generate_detailed_rolls(candidates, rng, scale=self.rules.initiative.scale)

        for roll in rolls:
            state.metrics.initiative_rolls.setdefault(roll.character_id, []).append(roll.total_initiative)
        order = ", ".join(f"{by_id[r.character_id].name} ({r.total_initiative:.1f})" for r in rolls)
        state.log.add(
            state.turn,
            "initiative",
            f"Initiative: {order}",
            order=[r.character_id for r in rolls],
            rolls=[r.total_initiative for r in rolls],
        )
        return [by_id[r.character_id] for r in rolls]

    def _try_cast(self, state: CombatState, actor: Combatant, target: Combatant, rng: RNG) -> bool:
        spell_rules = self.rules.spells
        eligible = [s for s in actor.spells if s.kind in spell_rules.castable_kinds]
        if not eligible:
            return False
        if rng() >= spell_rules.cast_chance:
            return False

        spell = eligible[min(len(eligible) - 1, int(rng() * len(eligible)))]
        recipient = actor if spell.kind == "buff" else target
        state.apply_buff(recipient, buff_module.stat_modifier_from_spell(spell, actor.id), applied_by=actor.id)
        state.log.add(
            state.turn,
            spell.kind,
            f"{actor.name} casts {spell.name} on {recipient.name} ({spell.signed_effect:+g}% {spell.target_stat}, {spell.duration} turns)",
            caster=actor.id,
            target=recipient.id,
            spell=spell.name,
        )
        return True

    def _check_end_of_round(self, state: CombatState) -> None:
        team_a_alive = bool(state.living(state.team_a))
        team_b_alive = bool(state.living(state.team_b))
        if not team_a_alive and not team_b_alive:
            self._finish(state, DRAW)
        elif not team_a_alive:
            self._finish(state, TEAM_B)
        elif not team_b_alive:
            self._finish(state, TEAM_A)

    def _finish(self, state: CombatState, winner: str) -> None:
        state.is_finished = True
        state.winner = winner
        if winner == DRAW:
            state.log.add(state.turn, "info", "Draw!")
        else:
            state.log.add(state.turn, "info", f"Team {'A' if winner == TEAM_A else 'B'} wins!", winner=winner)
        logger.debug("Combat finished on turn %d: %s", state.turn, winner)

    # --------------- Damage ---------------

    def _stat_block_damage(
        self, state: CombatState, actor: Combatant, target: Combatant, rng: RNG
    ) -> Tuple[Optional[int], bool]:
        attacker = self.current_stats(state, actor)
        defender = self.current_stats(state, target)
        hit_rules = self.rules.hit

        hit_chance = calculate_hit_chance(
            attacker.txc, defender.evasion, hit_rules.base_chance, hit_rules.min_chance, hit_rules.max_chance
        )
        hit_roll = rng() * 100
        if hit_roll > hit_chance:
            state.log.add(
                state.turn,
                "miss",
                f"{actor.name} misses {target.name} (Chance: {hit_chance:.0f}%, Roll: {hit_roll:.0f})",
                attacker=actor.id,
                defender=target.id,
            )
            return None, False
        state.metrics.bump(state.metrics.hits, actor.id)

        crit_roll = rng() * 100
        is_crit = crit_roll <= attacker.crit_chance

        def mitigate(amount: float) -> float:
            return calculate_effective_damage(
                amount,
                defender.armor,
                defender.resistance,
                attacker.armor_pen,
                attacker.pen_percent,
                defender.config_flat_first,
                self.rules.mitigation.armor_factor,
                self.rules.mitigation.armor_reduction_cap,
            )

        if defender.config_apply_before_crit:
            final = mitigate(attacker.damage)
            if is_crit:
                final = calculate_critical_damage(final, attacker.crit_mult)
        else:
            raw = calculate_critical_damage(attacker.damage, attacker.crit_mult) if is_crit else attacker.damage
            final = mitigate(raw)
        return max(0, round_half_up(final)), is_crit

    def _legacy_damage(self, actor: Combatant, target: Combatant, rng: RNG) -> Tuple[int, bool]:
        attacker = _legacy_profile(actor)
        defender = _legacy_profile(target)
        variance = LEGACY_VARIANCE_LOW + rng() * LEGACY_VARIANCE_SPREAD
        total = math.floor((attacker.attack_power + attacker.weapon_damage) * variance)
        is_crit = rng() < attacker.crit_chance
        if is_crit:
            total = math.floor(total * LEGACY_CRIT_MULT)
        return max(1, total - defender.defense), is_crit

    def _apply_hit(self, state: CombatState, actor: Combatant, target: Combatant, damage: int, is_crit: bool) -> AttackOutcome:
        absorbed = 0.0
        remaining = damage
        entry = state.effects.get(target.id)
        if entry is not None and entry.buffs:
            absorption = buff_module.apply_damage_to_shields(damage, entry.buffs)
            entry.buffs = absorption.updated_buffs
            remaining = absorption.remaining_damage
            absorbed = damage - remaining

        lost = target.take_damage(remaining)
        shield_note = f" [{absorbed:g} absorbed]" if absorbed else ""
        state.log.add(
            state.turn,
            "attack",
            f"{actor.name} attacks {target.name} for {damage} damage.{shield_note} ({target.current_hp:g}/{target.max_hp:g} HP left)",
            attacker=actor.id,
            defender=target.id,
            damage=damage,
            absorbed=absorbed,
            hp_after=target.current_hp,
            crit=is_crit,
        )

        healed = 0.0
        lifesteal = actor.stat_block.lifesteal if actor.stat_block is not None else 0
        drain = calculate_lifesteal_heal(lost, lifesteal)
        if drain > 0 and actor.is_alive:
            healed = actor.heal(apply_healing_cap(actor.current_hp, drain, actor.max_hp))
            if healed:
                state.log.add(
                    state.turn,
                    "heal",
                    f"{actor.name} drains {healed:g} HP.",
                    entity=actor.id,
                    amount=healed,
                )

        defeated = not target.is_alive
        if defeated:
            state.log.add(state.turn, "death", f"{target.name} dies!", entity=target.id)
        return AttackOutcome(
            attacker=actor.id,
            defender=target.id,
            hit=True,
            crit=is_crit,
            damage=damage,
            absorbed=absorbed,
            hp_lost=lost,
            healed=healed,
            defeated=defeated,
        )


def _legacy_profile(combatant: Combatant) -> LegacyProfile:
    if combatant.legacy is not None:
        return combatant.legacy
    stats = combatant.stat_block
    return LegacyProfile(
        max_hp=stats.hp,
        attack_power=stats.damage,
        defense=stats.armor,
        crit_chance=stats.crit_chance / 100,
    )


def resolve_combat_round(state: CombatState, rng: RNG, rules: Optional[CombatRules] = None) -> CombatState:
    """Resolve one round of ``state`` in place and return it."""
    return RoundResolver(rules).resolve(state, rng)


__all__ = ["AttackOutcome", "RoundResolver", "resolve_combat_round", "round_half_up"]
