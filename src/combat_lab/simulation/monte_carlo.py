"""
Monte Carlo batch runner.

Runs many independent combats and aggregates win rates (with normal
approximation confidence intervals), combat length, damage per turn,
overkill and HP efficiency.

Three ways to drive a batch:
- ``MonteCarloRunner(rng).run(config)``: one shared RNG consumed sequentially.
- ``run_seeded(config, seed)``: every iteration gets its own stream derived
  from (seed, iteration index).
- ``run_parallel(config, seed, workers)``: same streams as ``run_seeded``,
  fanned out over a process pool; results are identical to the serial run.
"""

from __future__ import annotations

import concurrent.futures
import logging
import math
import statistics
from collections import Counter
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import CombatRules
from ..rng import RNG, RNGStreams
from .simulator import CombatSimulator
from .types import (
    DRAW,
    ENTITY1,
    ENTITY2,
    SIDES,
    CombatConfig,
    CombatResult,
    CombatStatistics,
    DamageMetrics,
    DPTStats,
    SimulationConfig,
    SimulationResults,
    SimulationSummary,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

DEFAULT_Z = 1.96
PARALLEL_CHUNK_SIZE = 250


def confidence_interval(proportion: float, n: int, z: float = DEFAULT_Z) -> Tuple[float, float]:
    """Normal-approximation interval ``p ± z·sqrt(p(1-p)/n)`` clamped to [0, 1]."""
    if n <= 0:
        raise ValueError("n must be positive")
    margin = z * math.sqrt(proportion * (1 - proportion) / n)
    return max(0.0, proportion - margin), min(1.0, proportion + margin)


class _Accumulator:
    """Collects per-combat numbers for one batch."""

    def __init__(self, combat: CombatConfig, rules: CombatRules, iterations: int) -> None:
        self.iterations = iterations
        self.rules = rules
        self.starting_hp = {
            ENTITY1: combat.entity1.to_stat_block(rules.baseline).hp,
            ENTITY2: combat.entity2.to_stat_block(rules.baseline).hp,
        }
        self.wins: Counter = Counter()
        self.turns: List[int] = []
        self.dpt: Dict[str, List[float]] = {side: [] for side in SIDES}
        self.overkill: Dict[str, List[float]] = {side: [] for side in SIDES}
        self.efficiency: Dict[str, List[float]] = {side: [] for side in SIDES}
        self.samples: List[CombatResult] = []

    def add(self, result: CombatResult, keep_sample: bool) -> None:
        if keep_sample:
            self.samples.append(result)
        self.wins[result.winner] += 1
        self.turns.append(result.turns)
        for side in SIDES:
            self.dpt[side].append(result.damage_dealt[side] / max(1, result.turns))
            self.overkill[side].append(result.overkill[side])
            hp_lost = self.starting_hp[side] - result.hp_remaining[side]
            self.efficiency[side].append(result.damage_dealt[side] / hp_lost if hp_lost > 0 else 0.0)

    def finish(self) -> SimulationResults:
        n = self.iterations
        z = self.rules.statistics.z_score
        rate1 = self.wins[ENTITY1] / n
        rate2 = self.wins[ENTITY2] / n
        summary = SimulationSummary(
            total_simulations=n,
            win_rates={ENTITY1: rate1, ENTITY2: rate2, "draws": self.wins[DRAW] / n},
            confidence_intervals={
                ENTITY1: confidence_interval(rate1, n, z),
                ENTITY2: confidence_interval(rate2, n, z),
            },
        )
        combat_statistics = CombatStatistics(
            average_turns=statistics.mean(self.turns),
            median_turns=statistics.median(self.turns),
            min_turns=min(self.turns),
            max_turns=max(self.turns),
            turn_distribution=dict(sorted(Counter(self.turns).items())),
        )
        damage_metrics = DamageMetrics(
            entity1=_dpt_stats(self.dpt[ENTITY1]),
            entity2=_dpt_stats(self.dpt[ENTITY2]),
            average_overkill={side: statistics.mean(self.overkill[side]) for side in SIDES},
        )
        logger.info(
            "Batch of %d combats: entity1 %.1f%% / entity2 %.1f%% / draws %.1f%%, avg %.1f turns",
            n,
            rate1 * 100,
            rate2 * 100,
            summary.win_rates["draws"] * 100,
            combat_statistics.average_turns,
        )
        return SimulationResults(
            summary=summary,
            combat_statistics=combat_statistics,
            damage_metrics=damage_metrics,
            hp_efficiency={side: statistics.mean(self.efficiency[side]) for side in SIDES},
            sample_combats=self.samples,
        )


def _dpt_stats(values: Sequence[float]) -> DPTStats:
    return DPTStats(
        average=statistics.mean(values),
        median=statistics.median(values),
        min=min(values),
        max=max(values),
    )


def _sample_config(combat: CombatConfig, detailed: bool) -> CombatConfig:
    if combat.enable_detailed_logging == detailed:
        return combat
    return CombatConfig(
        entity1=combat.entity1,
        entity2=combat.entity2,
        turn_limit=combat.turn_limit,
        enable_detailed_logging=detailed,
        sudden_death=combat.sudden_death,
        resolve_timeouts=combat.resolve_timeouts,
    )


class MonteCarloRunner:
    """Batch runner over a single sequential RNG."""

    def __init__(self, rng: RNG, rules: Optional[CombatRules] = None) -> None:
        if rng is None:
            raise ValueError("MonteCarloRunner needs an explicit RNG")
        self.rng = rng
        self.rules = rules or CombatRules()

    def run(self, config: SimulationConfig, on_progress: Optional[ProgressCallback] = None) -> SimulationResults:
        simulator = CombatSimulator(self.rng, self.rules)
        return _run_batch(config, self.rules, (simulator for _ in range(config.iterations)), on_progress)


def _log_sample_size(config: SimulationConfig, rules: CombatRules) -> int:
    if config.log_sample_size is not None:
        return config.log_sample_size
    return rules.statistics.log_sample_size


def _run_batch(
    config: SimulationConfig,
    rules: CombatRules,
    simulators: Iterable[CombatSimulator],
    on_progress: Optional[ProgressCallback],
) -> SimulationResults:
    sample_size = _log_sample_size(config, rules)
    detailed = _sample_config(config.combat, True)
    plain = _sample_config(config.combat, False)

    def results() -> Iterable[Tuple[int, CombatResult]]:
        for index, simulator in enumerate(simulators):
            yield index, simulator.simulate(detailed if index < sample_size else plain)

    return _aggregate(config, rules, results(), on_progress)


def _aggregate(
    config: SimulationConfig,
    rules: CombatRules,
    indexed_results: Iterable[Tuple[int, CombatResult]],
    on_progress: Optional[ProgressCallback],
) -> SimulationResults:
    sample_size = _log_sample_size(config, rules)
    interval = rules.statistics.progress_interval
    acc = _Accumulator(config.combat, rules, config.iterations)
    for index, result in indexed_results:
        acc.add(result, keep_sample=index < sample_size)
        done = index + 1
        if on_progress is not None and done % interval == 0:
            on_progress(done / config.iterations)
    return acc.finish()


def run_seeded(
    config: SimulationConfig,
    seed: int,
    rules: Optional[CombatRules] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> SimulationResults:
    """Serial batch where iteration ``i`` uses the stream derived from ``(seed, i)``."""
    rules = rules or CombatRules()
    streams = RNGStreams(seed)
    simulators = (CombatSimulator(streams.iteration_rng(i), rules) for i in range(config.iterations))
    return _run_batch(config, rules, simulators, on_progress)


def _simulate_range(
    combat: CombatConfig, rules: CombatRules, seed: int, start: int, stop: int, sample_size: int
) -> List[CombatResult]:
    """Worker entry point: simulate iterations ``[start, stop)`` with their own streams."""
    streams = RNGStreams(seed)
    detailed = _sample_config(combat, True)
    plain = _sample_config(combat, False)
    return [
        CombatSimulator(streams.iteration_rng(i), rules).simulate(detailed if i < sample_size else plain)
        for i in range(start, stop)
    ]


def run_parallel(
    config: SimulationConfig,
    seed: int,
    workers: Optional[int] = None,
    rules: Optional[CombatRules] = None,
    on_progress: Optional[ProgressCallback] = None,
    chunk_size: int = PARALLEL_CHUNK_SIZE,
) -> SimulationResults:
    """Process-pool version of :func:`run_seeded` with identical results.

    Chunks are aggregated in iteration order, so the output does not depend on
    the number of workers or on scheduling. ``workers=1`` runs in-process.
    """
    rules = rules or CombatRules()
    if workers is not None and workers <= 1:
        return run_seeded(config, seed, rules, on_progress)
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    sample_size = _log_sample_size(config, rules)
    bounds = [(start, min(start + chunk_size, config.iterations)) for start in range(0, config.iterations, chunk_size)]
    logger.debug("Running %d iterations in %d chunk(s) on up to %s worker(s)", config.iterations, len(bounds), workers)

    with concurrent.futures.ProcessPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(_simulate_range, config.combat, rules, seed, start, stop, sample_size)
            for start, stop in bounds
        ]

        def results() -> Iterable[Tuple[int, CombatResult]]:
            index = 0
            for future in futures:
                for result in future.result():
                    yield index, result
                    index += 1

        return _aggregate(config, rules, results(), on_progress)


__all__ = [
    "MonteCarloRunner",
    "ProgressCallback",
    "confidence_interval",
    "run_parallel",
    "run_seeded",
]
