"""
Simulation package for combat-lab.

Contains:
- CombatSimulator: one 1v1 combat driven by the round resolver.
- Monte Carlo batch runners with confidence intervals and damage statistics.
- StatValueAnalyzer: HP-equivalent stat weights by binary search.
"""

from .monte_carlo import MonteCarloRunner, confidence_interval, run_parallel, run_seeded
from .simulator import CombatSimulator
from .stat_analyzer import StatValueAnalyzer
from .types import (
    CalibrationResult,
    CombatConfig,
    CombatResult,
    CombatStatistics,
    DamageMetrics,
    DPTStats,
    EntityStats,
    SimulationConfig,
    SimulationResults,
    SimulationSummary,
    SuddenDeathRules,
    TurnData,
)

__all__ = [
    "CombatSimulator",
    "MonteCarloRunner",
    "confidence_interval",
    "run_parallel",
    "run_seeded",
    "StatValueAnalyzer",
    "CalibrationResult",
    "CombatConfig",
    "CombatResult",
    "CombatStatistics",
    "DamageMetrics",
    "DPTStats",
    "EntityStats",
    "SimulationConfig",
    "SimulationResults",
    "SimulationSummary",
    "SuddenDeathRules",
    "TurnData",
]
