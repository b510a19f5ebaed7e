from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from .errors import ConfigurationError, UnknownStatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatBlock:
    """Canonical numeric description of a combatant's power level.

    Percent-valued stats (crit_chance, fail_chance, resistance, pen_percent,
    lifesteal) are expressed in 0-100 units. Multipliers (crit_mult, fail_mult)
    are plain factors. The two ``config_*`` flags describe how damage against
    this combatant is mitigated:

    - config_flat_first: armor reduction before resistance (else resistance first).
    - config_apply_before_crit: mitigate the base hit, then apply the crit
      multiplier (else crit first, then mitigate).

    Defaults are the validated baseline used for symmetric calibration.
    """

    hp: float = 150
    damage: float = 25
    txc: float = 25
    evasion: float = 0

    crit_chance: float = 5
    crit_mult: float = 2.0
    crit_txc_bonus: float = 20

    fail_chance: float = 5
    fail_mult: float = 0.0
    fail_txc_malus: float = 20

    armor: float = 0
    resistance: float = 0
    armor_pen: float = 0
    pen_percent: float = 0

    lifesteal: float = 0
    regen: float = 0
    agility: float = 50

    config_flat_first: bool = True
    config_apply_before_crit: bool = False

    def replace(self, **changes: Any) -> "StatBlock":
        """Return a copy with the given fields overridden (keys are validated)."""
        for key in changes:
            validate_field(key)
        return dataclasses.replace(self, **changes)

    def with_delta(self, stat: str, amount: float) -> "StatBlock":
        """Return a copy with ``amount`` added to the numeric ``stat``."""
        key = validate_stat_key(stat)
        return dataclasses.replace(self, **{key: getattr(self, key) + amount})

    def get(self, stat: str) -> float:
        return getattr(self, validate_stat_key(stat))

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base: "StatBlock | None" = None) -> "StatBlock":
        """Build a StatBlock from a mapping, inheriting unset fields from ``base``."""
        base = base or cls()
        overrides = {}
        for raw_key, value in (data or {}).items():
            key = normalize_stat_key(raw_key)
            validate_field(key)
            if value is None:
                continue
            overrides[key] = _coerce(key, value)
        return dataclasses.replace(base, **overrides)

    @staticmethod
    def numeric_fields() -> Tuple[str, ...]:
        return NUMERIC_STATS


BASELINE_STATS = StatBlock()

FLAG_FIELDS: Tuple[str, ...] = ("config_flat_first", "config_apply_before_crit")
NUMERIC_STATS: Tuple[str, ...] = tuple(
    f.name for f in dataclasses.fields(StatBlock) if f.name not in FLAG_FIELDS
)
_ALL_FIELDS = frozenset(f.name for f in dataclasses.fields(StatBlock))

# Descriptors coming from UI forms or archetype builders use camelCase keys and
# a couple of legacy names; they all resolve onto StatBlock fields.
STAT_ALIASES: Dict[str, str] = {
    "attack": "damage",
    "defense": "armor",
    "critChance": "crit_chance",
    "critMult": "crit_mult",
    "critTxCBonus": "crit_txc_bonus",
    "failChance": "fail_chance",
    "failMult": "fail_mult",
    "failTxCMalus": "fail_txc_malus",
    "armorPen": "armor_pen",
    "penPercent": "pen_percent",
    "configFlatFirst": "config_flat_first",
    "configApplyBeforeCrit": "config_apply_before_crit",
}


def normalize_stat_key(key: str) -> str:
    return STAT_ALIASES.get(key, key)


def validate_field(key: str) -> str:
    if key not in _ALL_FIELDS:
        raise UnknownStatError(f"Unknown stat '{key}'. Valid stats: {', '.join(sorted(_ALL_FIELDS))}")
    return key


def validate_stat_key(key: str) -> str:
    """Resolve aliases and ensure ``key`` names a numeric StatBlock field."""
    resolved = normalize_stat_key(key)
    if resolved not in NUMERIC_STATS:
        raise UnknownStatError(
            f"'{key}' is not a numeric stat. Valid stats: {', '.join(NUMERIC_STATS)}"
        )
    return resolved


def _coerce(key: str, value: Any) -> Any:
    if key in FLAG_FIELDS:
        return bool(value)
    if isinstance(value, bool):
        raise ConfigurationError(f"Stat '{key}' must be numeric, got a boolean")
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Stat '{key}' must be numeric, got {value!r}") from exc


__all__ = [
    "StatBlock",
    "BASELINE_STATS",
    "NUMERIC_STATS",
    "FLAG_FIELDS",
    "STAT_ALIASES",
    "normalize_stat_key",
    "validate_stat_key",
]
