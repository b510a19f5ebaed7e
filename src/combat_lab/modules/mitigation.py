from __future__ import annotations

ARMOR_FACTOR = 10
ARMOR_REDUCTION_CAP = 0.90
MIN_DAMAGE = 1


def armor_reduction(
    effective_armor: float,
    damage: float,
    armor_factor: float = ARMOR_FACTOR,
    cap: float = ARMOR_REDUCTION_CAP,
) -> float:
    """Fraction of a hit removed by armor: ``armor / (armor + factor * damage)``, capped.

    Large hits are mitigated proportionally less than small ones.
    """
    if effective_armor <= 0 or damage <= 0:
        return 0.0
    return min(cap, effective_armor / (effective_armor + armor_factor * damage))


def calculate_effective_damage(
    raw_damage: float,
    armor: float,
    resistance: float,
    armor_pen: float,
    pen_percent: float,
    flat_first: bool,
    armor_factor: float = ARMOR_FACTOR,
    cap: float = ARMOR_REDUCTION_CAP,
) -> float:
    """Damage left after armor and resistance, never below 1.

    Args:
        raw_damage: Incoming damage (after crit when mitigation follows crit).
        armor: Defender's flat armor.
        resistance: Defender's resistance in percent.
        armor_pen: Attacker's flat armor penetration.
        pen_percent: Attacker's resistance penetration in percent points.
        flat_first: Apply armor before resistance when True, after it otherwise.
    """
    effective_armor = max(0.0, armor - armor_pen)
    res_factor = max(0.0, min(1.0, max(0.0, resistance - pen_percent) / 100))

    damage = raw_damage
    reduction = armor_reduction(effective_armor, damage, armor_factor, cap)

    if flat_first:
        damage = damage * (1 - reduction)
        damage = damage * (1 - res_factor)
    else:
        damage = damage * (1 - res_factor)
        damage = damage * (1 - reduction)

    return max(MIN_DAMAGE, damage)


def average_effective_damage(
    base_damage: float,
    crit_chance: float,
    crit_mult: float,
    fail_chance: float,
    fail_mult: float,
    armor: float,
    resistance: float,
    armor_pen: float,
    pen_percent: float,
    flat_first: bool,
    apply_before_crit: bool,
    armor_factor: float = ARMOR_FACTOR,
    cap: float = ARMOR_REDUCTION_CAP,
) -> float:
    """Expected mitigated damage per landed hit across crit, fail and normal outcomes."""
    p_crit = crit_chance / 100
    p_fail = fail_chance / 100
    p_normal = max(0.0, 1 - p_crit - p_fail)

    def mitigate(amount: float) -> float:
        return calculate_effective_damage(
            amount, armor, resistance, armor_pen, pen_percent, flat_first, armor_factor, cap
        )

    if apply_before_crit:
        mitigated = mitigate(base_damage)
        return p_crit * mitigated * crit_mult + p_fail * mitigated * fail_mult + p_normal * mitigated

    # Armor scales with hit size, so each outcome is mitigated separately.
    return (
        p_crit * mitigate(base_damage * crit_mult)
        + p_fail * mitigate(base_damage * fail_mult)
        + p_normal * mitigate(base_damage)
    )
