"""
combat-lab core package.

Headless combat resolution and statistical calibration for turn-based RPG
balancing:
- Formula and stacking modules (hit chance, crits, mitigation, initiative, DoT/HoT, buffs)
- Status effect manager and the combat round resolver
- 1v1 combat simulator and Monte Carlo batch runner
- Stat value analyzer (HP-equivalent weights by binary search)

Every entry point takes an explicit RNG (or seed) and a caller-owned CombatRules.
"""
from .config import CombatRules
from .errors import CombatLabError, ConfigurationError, UnknownStatError
from .rng import RNG, RNGStreams, lcg, seeded
from .spells import Spell
from .stats import BASELINE_STATS, StatBlock
from .simulation import (
    CalibrationResult,
    CombatConfig,
    CombatResult,
    CombatSimulator,
    EntityStats,
    MonteCarloRunner,
    SimulationConfig,
    SimulationResults,
    StatValueAnalyzer,
    run_parallel,
    run_seeded,
)

__version__ = "0.1.0"

__all__ = [
    "CombatRules",
    "CombatLabError",
    "ConfigurationError",
    "UnknownStatError",
    "RNG",
    "RNGStreams",
    "lcg",
    "seeded",
    "Spell",
    "BASELINE_STATS",
    "StatBlock",
    "CalibrationResult",
    "CombatConfig",
    "CombatResult",
    "CombatSimulator",
    "EntityStats",
    "MonteCarloRunner",
    "SimulationConfig",
    "SimulationResults",
    "StatValueAnalyzer",
    "run_parallel",
    "run_seeded",
]
