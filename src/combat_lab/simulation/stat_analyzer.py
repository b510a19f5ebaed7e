from __future__ import annotations

import datetime
import logging
import math
import statistics
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from ..config import CombatRules
from ..errors import ConfigurationError
from ..rng import RNGStreams
from ..stats import StatBlock, validate_stat_key
from .monte_carlo import MonteCarloRunner
from .types import ENTITY1, CalibrationResult, CombatConfig, EntityStats, SimulationConfig, SimulationResults

logger = logging.getLogger(__name__)

DEFAULT_INCREMENT = 10
DEFAULT_ITERATIONS = 5000


class SupportsRun(Protocol):
    def run(self, config: SimulationConfig) -> SimulationResults: ...


class StatValueAnalyzer:
    """Finds the HP value of a stat point by binary search.

    A Challenger gets ``+increment`` of the stat; the Baseline's HP is searched
    in ``[hp, hp + range_factor * increment]`` until the Baseline's win rate
    falls inside the equilibrium band. The HP surplus divided by the increment
    is the weight. Several passes give a spread for the confidence score and a
    run at twice the increment scores linearity.
    """

    def __init__(
        self,
        runner: Optional[SupportsRun] = None,
        rules: Optional[CombatRules] = None,
        seed: int = 0,
    ) -> None:
        self.rules = rules or CombatRules()
        if runner is None:
            runner = MonteCarloRunner(RNGStreams(seed).context_rng("calibration").random, self.rules)
        self.runner = runner

    @property
    def baseline(self) -> StatBlock:
        return self.rules.baseline

    def calibrate_stat(
        self, stat: str, increment: float = DEFAULT_INCREMENT, iterations: int = DEFAULT_ITERATIONS
    ) -> CalibrationResult:
        stat = validate_stat_key(stat)
        if increment <= 0:
            raise ConfigurationError(f"increment must be positive, got {increment}")
        if iterations <= 0:
            raise ConfigurationError(f"iterations must be positive, got {iterations}")

        calibration = self.rules.calibration
        logger.info("Calibrating %s (+%g) with %d combats per step", stat, increment, iterations)

        weights: List[float] = []
        converged = True
        for index in range(calibration.passes):
            weight, hit_band = self.run_single_calibration(stat, increment, iterations)
            logger.debug("Pass %d/%d for %s: weight %.3f", index + 1, calibration.passes, stat, weight)
            weights.append(weight)
            converged = converged and hit_band

        avg_weight = statistics.mean(weights)
        std_dev = statistics.pstdev(weights)
        relative_std = std_dev / (avg_weight or 1)
        confidence = max(0.0, 1.0 - relative_std * 10)

        weight_2x, hit_band_2x = self.run_single_calibration(stat, increment * 2, iterations)
        converged = converged and hit_band_2x
        linearity = 1.0 - min(1.0, abs(avg_weight - weight_2x) / (avg_weight or 1))

        result = CalibrationResult(
            stat=stat,
            weight=round(avg_weight, 2),
            confidence=round(confidence, 2),
            linearity=round(linearity, 2),
            sample_size=iterations * calibration.passes,
            timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat(),
            converged=converged,
            pass_weights=tuple(weights),
        )
        if not converged:
            logger.warning("Calibration of %s did not settle inside the equilibrium band", stat)
        logger.info(
            "%s: weight %.2f HP/pt (confidence %.2f, linearity %.2f)",
            stat,
            result.weight,
            result.confidence,
            result.linearity,
        )
        return result

    def calibrate_many(
        self, stats: Iterable[str], increment: float = DEFAULT_INCREMENT, iterations: int = DEFAULT_ITERATIONS
    ) -> Dict[str, CalibrationResult]:
        return {stat: self.calibrate_stat(stat, increment, iterations) for stat in stats}

    def run_single_calibration(self, stat: str, increment: float, iterations: int) -> Tuple[float, bool]:
        """One binary search. Returns (weight, whether the band was reached)."""
        calibration = self.rules.calibration
        band_low, band_high = calibration.band
        base_hp = self.baseline.hp
        challenger = EntityStats(name="Challenger", stats={stat: self.baseline.with_delta(stat, increment).get(stat)})

        low = base_hp
        high = base_hp + increment * calibration.range_factor
        hit_band = False
        while high - low > 1:
            mid = math.floor((low + high) / 2)
            defender = EntityStats(name="Baseline", stats={"hp": mid})
            results = self.runner.run(
                SimulationConfig(
                    combat=CombatConfig(entity1=defender, entity2=challenger, turn_limit=calibration.turn_limit),
                    iterations=iterations,
                )
            )
            win_rate = results.summary.win_rates[ENTITY1]
            if win_rate < band_low:
                low = mid
            elif win_rate > band_high:
                high = mid
            else:
                low = high = mid
                hit_band = True
                break

        equilibrium_hp = math.floor((low + high) / 2)
        return (equilibrium_hp - base_hp) / increment, hit_band


__all__ = ["StatValueAnalyzer", "SupportsRun"]
