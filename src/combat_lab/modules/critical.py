from __future__ import annotations

import math

from .hitchance import BASE_HIT_CHANCE, UNREACHABLE_ATTACKS


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def calculate_critical_damage(base_damage: float, multiplier: float) -> int:
    """Damage of a single critical hit, floored to an integer."""
    return math.floor(base_damage * multiplier)


def effective_hit_chance(
    txc: float,
    evasion: float,
    crit_chance: float,
    crit_txc_bonus: float,
    fail_chance: float,
    fail_txc_malus: float,
    base: float = BASE_HIT_CHANCE,
) -> float:
    """Share of attacks that land once crit bonus and fail malus are weighted in.

    Crit attacks land with the bonus applied to TxC, fails with the malus, and
    the remaining attacks with plain TxC; each chance is clamped to [0, 100].
    """
    normal = _clamp_percent(txc + base - evasion)
    crit_hit = _clamp_percent(txc + crit_txc_bonus + base - evasion)
    fail_hit = _clamp_percent(txc - fail_txc_malus + base - evasion)

    p_crit = crit_chance / 100
    p_fail = fail_chance / 100
    p_normal = max(0.0, 1 - p_crit - p_fail)

    return p_crit * crit_hit + p_fail * fail_hit + p_normal * normal


def average_damage_multiplier(
    crit_chance: float,
    crit_mult: float,
    fail_chance: float,
    fail_mult: float,
) -> float:
    p_crit = crit_chance / 100
    p_fail = fail_chance / 100
    p_normal = max(0.0, 1 - p_crit - p_fail)
    return p_crit * crit_mult + p_fail * fail_mult + p_normal * 1.0


def attacks_per_ko(htk_pure: float, effective_chance: float, avg_damage_mult: float) -> float:
    denominator = (effective_chance / 100) * avg_damage_mult
    if denominator <= 0:
        return UNREACHABLE_ATTACKS
    return htk_pure / denominator
