from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..combat.log import CombatEvent
from ..errors import ConfigurationError
from ..spells import Spell
from ..stats import StatBlock

ENTITY1 = "entity1"
ENTITY2 = "entity2"
DRAW = "draw"
SIDES: Tuple[str, str] = (ENTITY1, ENTITY2)


@dataclass(frozen=True)
class EntityStats:
    """External description of one side of a 1v1 matchup.

    ``stats`` holds only the overrides; every unset field inherits the baseline.
    Keys may use StatBlock names or the accepted aliases (``attack``,
    ``defense``, camelCase names).
    """

    name: str
    stats: Mapping[str, Any] = field(default_factory=dict)
    spells: Tuple[Spell, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "stats", dict(self.stats))
        object.__setattr__(self, "spells", tuple(self.spells))

    def to_stat_block(self, baseline: Optional[StatBlock] = None) -> StatBlock:
        return StatBlock.from_dict(self.stats, base=baseline)

    def with_stats(self, **overrides: Any) -> "EntityStats":
        return dataclasses.replace(self, stats={**self.stats, **overrides})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EntityStats":
        """Build from a flat descriptor: ``{"name": ..., "hp": ..., "spells": [...]}``."""
        raw = dict(data)
        name = raw.pop("name", None) or "Entity"
        spells = tuple(s if isinstance(s, Spell) else Spell.from_dict(s) for s in raw.pop("spells", None) or ())
        stats = raw.pop("stats", None) or raw
        return cls(name=name, stats=stats, spells=spells)


@dataclass(frozen=True)
class SuddenDeathRules:
    """Escalating damage once a combat drags on.

    From ``start_turn`` on, both sides deal
    ``1 + damage_multiplier_per_turn * (turn - start_turn + 1)`` times their
    base damage, optionally capped at ``max_damage_multiplier``.
    """

    start_turn: int
    damage_multiplier_per_turn: float
    max_damage_multiplier: Optional[float] = None

    @property
    def active(self) -> bool:
        return self.start_turn > 0 and self.damage_multiplier_per_turn > 0

    def multiplier(self, turn: int) -> float:
        if not self.active or turn < self.start_turn:
            return 1.0
        value = 1 + self.damage_multiplier_per_turn * (turn - self.start_turn + 1)
        if self.max_damage_multiplier is not None:
            value = min(value, self.max_damage_multiplier)
        return value


@dataclass(frozen=True)
class CombatConfig:
    entity1: EntityStats
    entity2: EntityStats
    turn_limit: int = 100
    enable_detailed_logging: bool = False
    sudden_death: Optional[SuddenDeathRules] = None
    # Break turn-limit draws by remaining HP, then damage dealt
    resolve_timeouts: bool = False

    def __post_init__(self) -> None:
        if self.turn_limit <= 0:
            raise ConfigurationError(f"turn_limit must be positive, got {self.turn_limit}")


@dataclass(frozen=True)
class TurnData:
    turn_number: int
    attacker: str
    defender: str
    damage_dealt: float
    defender_hp_remaining: float


@dataclass(frozen=True)
class CombatResult:
    """Outcome of one combat. Per-side values are keyed ``entity1``/``entity2``."""

    winner: str
    turns: int
    damage_dealt: Dict[str, float]
    hp_remaining: Dict[str, float]
    overkill: Dict[str, float]
    initiative_rolls: Dict[str, List[float]]
    hit_rate: Dict[str, float]
    crit_rate: Dict[str, float]
    status_effects_applied: Dict[str, int]
    turns_stunned: Dict[str, int]
    timed_out: bool = False
    turn_by_turn_log: Optional[List[TurnData]] = None
    events: Optional[List[CombatEvent]] = None

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class DPTStats:
    """Damage-per-turn distribution over a batch."""

    average: float
    median: float
    min: float
    max: float


@dataclass(frozen=True)
class SimulationConfig:
    combat: CombatConfig
    iterations: int
    # None means the configured statistics.log_sample_size
    log_sample_size: Optional[int] = None

    def __post_init__(self) -> None:
        if self.iterations <= 0:
            raise ConfigurationError(f"iterations must be positive, got {self.iterations}")
        if self.log_sample_size is not None and self.log_sample_size < 0:
            raise ConfigurationError("log_sample_size cannot be negative")


@dataclass(frozen=True)
class SimulationSummary:
    total_simulations: int
    win_rates: Dict[str, float]  # entity1, entity2, draws
    confidence_intervals: Dict[str, Tuple[float, float]]


@dataclass(frozen=True)
class CombatStatistics:
    average_turns: float
    median_turns: float
    min_turns: int
    max_turns: int
    # turns -> number of combats
    turn_distribution: Dict[int, int]


@dataclass(frozen=True)
class DamageMetrics:
    entity1: DPTStats
    entity2: DPTStats
    average_overkill: Dict[str, float]


@dataclass(frozen=True)
class SimulationResults:
    summary: SimulationSummary
    combat_statistics: CombatStatistics
    damage_metrics: DamageMetrics
    hp_efficiency: Dict[str, float]
    sample_combats: List[CombatResult] = field(default_factory=list)

    @property
    def win_rate(self) -> float:
        """Shortcut for entity1's win rate."""
        return self.summary.win_rates[ENTITY1]

    def to_dict(self, include_samples: bool = True) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        if not include_samples:
            data.pop("sample_combats")
        return data


@dataclass(frozen=True)
class CalibrationResult:
    """HP-equivalent value of one point of ``stat``.

    Attributes:
        weight: HP per stat point, mean over all passes.
        confidence: 1 - 10 * relative std-dev of the passes, floored at 0.
        linearity: agreement between the 1x and 2x increment weights (1 = linear).
        sample_size: Combats simulated per search step times the number of passes.
        converged: False when any pass ended its search outside the equilibrium band.
        pass_weights: Raw weight of each pass, unrounded.
    """

    stat: str
    weight: float
    confidence: float
    linearity: float
    sample_size: int
    timestamp: str
    converged: bool = True
    pass_weights: Tuple[float, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["pass_weights"] = list(self.pass_weights)
        return data


__all__ = [
    "ENTITY1",
    "ENTITY2",
    "DRAW",
    "SIDES",
    "EntityStats",
    "SuddenDeathRules",
    "CombatConfig",
    "TurnData",
    "CombatResult",
    "DPTStats",
    "SimulationConfig",
    "SimulationSummary",
    "CombatStatistics",
    "DamageMetrics",
    "SimulationResults",
    "CalibrationResult",
]
