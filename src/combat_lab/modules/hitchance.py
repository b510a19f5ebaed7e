from __future__ import annotations

BASE_HIT_CHANCE = 50
MIN_HIT_CHANCE = 1
MAX_HIT_CHANCE = 100
UNREACHABLE_ATTACKS = 999


def calculate_hit_chance(
    txc: float,
    evasion: float,
    base: float = BASE_HIT_CHANCE,
    floor: float = MIN_HIT_CHANCE,
    cap: float = MAX_HIT_CHANCE,
) -> float:
    """Percent chance that an attack lands: ``txc + base - evasion`` clamped to [floor, cap]."""
    return max(floor, min(cap, txc + base - evasion))


def attacks_per_ko(htk_pure: float, hit_chance: float) -> float:
    """Expected attacks needed to land ``htk_pure`` hits at ``hit_chance`` percent."""
    if hit_chance <= 0:
        return UNREACHABLE_ATTACKS
    return htk_pure / (hit_chance / 100)


def evasion_for_chance(txc: float, target_chance: float, base: float = BASE_HIT_CHANCE) -> float:
    return txc + base - target_chance


def txc_for_chance(evasion: float, target_chance: float, base: float = BASE_HIT_CHANCE) -> float:
    return target_chance - base + evasion


def consistency(txc: float, htk: float, evasion: float, base: float = BASE_HIT_CHANCE) -> float:
    """Percent chance of landing ``htk`` hits in a row."""
    chance = calculate_hit_chance(txc, evasion, base=base)
    if chance <= 0:
        return 0.0
    return (chance / 100) ** htk * 100
