from __future__ import annotations

from dataclasses import dataclass

# Combat length the sustain stat weights are calibrated against
DEFAULT_COMBAT_TURNS = 10


@dataclass(frozen=True)
class SustainValue:
    lifesteal_value: float
    regen_value: float
    total_value: float


def calculate_lifesteal_heal(damage_dealt: float, lifesteal_percent: float) -> float:
    """HP drained by an attacker: ``damage_dealt * lifesteal% / 100``.

    ``damage_dealt`` is the HP the target actually lost, after mitigation and
    shields. Non-positive damage or lifesteal heals nothing.
    """
    if damage_dealt <= 0 or lifesteal_percent <= 0:
        return 0.0
    return damage_dealt * lifesteal_percent / 100


def calculate_regen_heal(regen: float) -> float:
    """Flat per-turn regeneration; negative regen heals nothing."""
    return max(0.0, regen)


def calculate_sustain_value(
    avg_damage_per_turn: float,
    lifesteal_percent: float,
    regen: float,
    combat_turns: int = DEFAULT_COMBAT_TURNS,
) -> SustainValue:
    """Total HP a combatant recovers over ``combat_turns`` from lifesteal and regen."""
    lifesteal_value = calculate_lifesteal_heal(avg_damage_per_turn, lifesteal_percent) * combat_turns
    regen_value = calculate_regen_heal(regen) * combat_turns
    return SustainValue(
        lifesteal_value=lifesteal_value,
        regen_value=regen_value,
        total_value=lifesteal_value + regen_value,
    )


def apply_healing_cap(current_hp: float, heal_amount: float, max_hp: float) -> float:
    """Portion of ``heal_amount`` that fits under ``max_hp``."""
    if current_hp >= max_hp:
        return 0.0
    return max(0.0, min(heal_amount, max_hp - current_hp))


__all__ = [
    "DEFAULT_COMBAT_TURNS",
    "SustainValue",
    "calculate_lifesteal_heal",
    "calculate_regen_heal",
    "calculate_sustain_value",
    "apply_healing_cap",
]
