from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigurationError
from .stats import StatBlock

logger = logging.getLogger(__name__)

SPELL_KINDS: Tuple[str, ...] = ("buff", "debuff")


@dataclass(frozen=True)
class HitRules:
    base_chance: float = 50
    min_chance: float = 1
    max_chance: float = 100


@dataclass(frozen=True)
class MitigationRules:
    armor_factor: float = 10
    armor_reduction_cap: float = 0.90


@dataclass(frozen=True)
class InitiativeRules:
    scale: float = 10
    # Agility used for combatants without a StatBlock
    legacy_speed: float = 100


@dataclass(frozen=True)
class SpellRules:
    cast_chance: float = 0.5
    castable_kinds: Tuple[str, ...] = SPELL_KINDS


@dataclass(frozen=True)
class StatisticsRules:
    z_score: float = 1.96
    progress_interval: int = 1000
    log_sample_size: int = 10


@dataclass(frozen=True)
class CalibrationRules:
    band: Tuple[float, float] = (0.48, 0.52)
    range_factor: float = 20
    passes: int = 5
    turn_limit: int = 100


@dataclass(frozen=True)
class CombatRules:
    """Caller-owned balance configuration passed into every entry point.

    Nothing here is a process-wide default: build one with ``CombatRules()``
    (dataclass defaults), ``CombatRules.load()`` (packaged YAML plus optional
    user overrides) or ``CombatRules.from_dict``.
    """

    hit: HitRules = field(default_factory=HitRules)
    mitigation: MitigationRules = field(default_factory=MitigationRules)
    initiative: InitiativeRules = field(default_factory=InitiativeRules)
    spells: SpellRules = field(default_factory=SpellRules)
    statistics: StatisticsRules = field(default_factory=StatisticsRules)
    calibration: CalibrationRules = field(default_factory=CalibrationRules)
    baseline: StatBlock = field(default_factory=StatBlock)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not 0.0 <= self.spells.cast_chance <= 1.0:
            raise ConfigurationError(f"spells.cast_chance must be within [0, 1], got {self.spells.cast_chance}")
        unknown = [k for k in self.spells.castable_kinds if k not in SPELL_KINDS]
        if unknown:
            raise ConfigurationError(f"Unsupported castable spell kinds: {unknown}")
        if self.hit.min_chance > self.hit.max_chance:
            raise ConfigurationError("hit.min_chance cannot exceed hit.max_chance")
        if not 0.0 <= self.mitigation.armor_reduction_cap <= 1.0:
            raise ConfigurationError("mitigation.armor_reduction_cap must be within [0, 1]")
        if self.mitigation.armor_factor <= 0:
            raise ConfigurationError("mitigation.armor_factor must be positive")
        low, high = self.calibration.band
        if not 0.0 <= low <= high <= 1.0:
            raise ConfigurationError(f"calibration.band must satisfy 0 <= low <= high <= 1, got {self.calibration.band}")
        if self.calibration.passes < 2:
            raise ConfigurationError("calibration.passes must be at least 2 to estimate spread")
        if self.calibration.turn_limit <= 0:
            raise ConfigurationError("calibration.turn_limit must be positive")
        if self.calibration.range_factor <= 0:
            raise ConfigurationError("calibration.range_factor must be positive")
        if self.statistics.progress_interval <= 0:
            raise ConfigurationError("statistics.progress_interval must be positive")
        if self.statistics.log_sample_size < 0:
            raise ConfigurationError("statistics.log_sample_size cannot be negative")

    @staticmethod
    def _load_yaml(path: Path) -> dict:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Malformed rules file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Rules file {path} must contain a mapping at the top level")
        return data

    @classmethod
    def _deep_merge(cls, base: dict, overlay: dict) -> dict:
        merged = dict(base)
        for k, v in (overlay or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                merged[k] = cls._deep_merge(base[k], v)
            else:
                merged[k] = v
        return merged

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CombatRules":
        try:
            hit = HitRules(**data.get("hit", {}))
            mitigation = MitigationRules(**data.get("mitigation", {}))
            initiative = InitiativeRules(**data.get("initiative", {}))
            spells_raw = dict(data.get("spells", {}))
            if "castable_kinds" in spells_raw:
                spells_raw["castable_kinds"] = tuple(spells_raw["castable_kinds"])
            spells = SpellRules(**spells_raw)
            statistics = StatisticsRules(**data.get("statistics", {}))
            calibration_raw = dict(data.get("calibration", {}))
            if "band" in calibration_raw:
                calibration_raw["band"] = tuple(calibration_raw["band"])
            calibration = CalibrationRules(**calibration_raw)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid rules section: {exc}") from exc
        baseline = StatBlock.from_dict(data.get("baseline", {}))
        return cls(
            hit=hit,
            mitigation=mitigation,
            initiative=initiative,
            spells=spells,
            statistics=statistics,
            calibration=calibration,
            baseline=baseline,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["spells"]["castable_kinds"] = list(self.spells.castable_kinds)
        data["calibration"]["band"] = list(self.calibration.band)
        return data

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "CombatRules":
        """Load rules from the packaged defaults and an optional user override file.

        If user_path is provided and exists, overlay values onto defaults.
        """
        try:
            with resources.files("combat_lab.data").joinpath("default_rules.yaml").open("r", encoding="utf-8") as f:
                default_data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Default rules not found; falling back to dataclass defaults.")
            default_data = cls().to_dict()

        user_data = {}
        if user_path is not None:
            if user_path.exists():
                user_data = cls._load_yaml(user_path)
                logger.info("Loaded user rules from %s", user_path)
            else:
                raise ConfigurationError(f"Rules file not found: {user_path}")

        merged = cls._deep_merge(default_data, user_data)
        rules = cls.from_dict(merged)
        logger.debug("Rules merged: %s", rules)
        return rules

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        logger.info("Saved rules to %s", path)


__all__ = [
    "CombatRules",
    "HitRules",
    "MitigationRules",
    "InitiativeRules",
    "SpellRules",
    "StatisticsRules",
    "CalibrationRules",
    "SPELL_KINDS",
]
