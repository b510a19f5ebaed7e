from __future__ import annotations

import pytest

from combat_lab.config import CalibrationRules, CombatRules
from combat_lab.errors import ConfigurationError, UnknownStatError
from combat_lab.simulation import SimulationResults, SimulationSummary, StatValueAnalyzer


def results_with(rate: float) -> SimulationResults:
    summary = SimulationSummary(
        total_simulations=1,
        win_rates={"entity1": rate, "entity2": 1 - rate, "draws": 0.0},
        confidence_intervals={},
    )
    return SimulationResults(summary=summary, combat_statistics=None, damage_metrics=None, hp_efficiency={})


class LinearRunner:
    """Baseline win rate climbs 5 points per HP around ``150 + weight * increment``."""

    def __init__(self, stat: str, weight: float) -> None:
        self.stat = stat
        self.weight = weight
        self.calls = []

    def run(self, config):
        self.calls.append(config)
        baseline = CombatRules().baseline
        increment = config.combat.entity2.stats[self.stat] - baseline.get(self.stat)
        equilibrium = baseline.hp + self.weight * increment
        rate = 0.5 + (config.combat.entity1.stats["hp"] - equilibrium) * 0.05
        return results_with(min(1.0, max(0.0, rate)))


class StepRunner:
    """Baseline loses every combat below ``150 + weight * increment`` HP and wins every one at or above it."""

    def __init__(self, stat: str, weight: float) -> None:
        self.stat = stat
        self.weight = weight

    def run(self, config):
        baseline = CombatRules().baseline
        increment = config.combat.entity2.stats[self.stat] - baseline.get(self.stat)
        equilibrium = baseline.hp + self.weight * increment
        return results_with(1.0 if config.combat.entity1.stats["hp"] >= equilibrium else 0.0)


class AlwaysLosing:
    def run(self, config):
        return results_with(0.0)


def test_linear_stat_is_recovered_exactly() -> None:
    runner = LinearRunner("damage", 1.5)
    result = StatValueAnalyzer(runner=runner).calibrate_stat("damage", increment=10, iterations=100)

    assert result.stat == "damage"
    assert result.weight == pytest.approx(1.5, abs=0.1)
    assert result.confidence > 0.8
    assert result.linearity == pytest.approx(1.0)
    assert result.converged is True
    assert result.sample_size == 100 * 5
    assert len(result.pass_weights) == 5
    assert result.timestamp


def test_step_response_lands_next_to_the_jump() -> None:
    result = StatValueAnalyzer(runner=StepRunner("damage", 1.5)).calibrate_stat("damage", increment=20, iterations=10)

    assert result.weight == pytest.approx(1.5, abs=0.1)
    assert result.confidence > 0.8
    assert result.linearity > 0.9
    # The band sits on the jump itself and is never observed
    assert result.converged is False


def test_search_matchup_shape() -> None:
    runner = LinearRunner("armor", 2.0)
    StatValueAnalyzer(runner=runner).run_single_calibration("armor", 10, 50)

    config = runner.calls[0]
    assert config.iterations == 50
    assert config.combat.entity1.name == "Baseline"
    assert config.combat.entity2.name == "Challenger"
    assert config.combat.entity2.stats == {"armor": 10}
    # First search step is the midpoint of [150, 150 + 20 * 10]
    assert config.combat.entity1.stats == {"hp": 250}
    assert config.combat.turn_limit == CombatRules().calibration.turn_limit


def test_aliases_resolve_to_stat_fields() -> None:
    result = StatValueAnalyzer(runner=LinearRunner("damage", 1.0)).calibrate_stat("attack", iterations=10)
    assert result.stat == "damage"


def test_unreachable_band_is_reported_as_not_converged() -> None:
    result = StatValueAnalyzer(runner=AlwaysLosing()).calibrate_stat("hp", increment=10, iterations=10)
    assert result.converged is False
    # Search runs out against the top of the range
    assert result.weight == pytest.approx(19.9)


def test_pass_count_comes_from_rules() -> None:
    rules = CombatRules(calibration=CalibrationRules(passes=3))
    runner = LinearRunner("hp", 1.0)
    result = StatValueAnalyzer(runner=runner, rules=rules).calibrate_stat("hp", iterations=10)
    assert len(result.pass_weights) == 3
    assert result.sample_size == 30


def test_calibrate_many_keys_by_requested_name() -> None:
    analyzer = StatValueAnalyzer(runner=LinearRunner("txc", 0.8))
    results = analyzer.calibrate_many(["txc"], iterations=10)
    assert set(results) == {"txc"}
    assert results["txc"].to_dict()["pass_weights"] == [0.8] * 5


@pytest.mark.parametrize(
    "kwargs, error",
    [
        ({"stat": "mana"}, UnknownStatError),
        ({"stat": "config_flat_first"}, UnknownStatError),
        ({"stat": "hp", "increment": 0}, ConfigurationError),
        ({"stat": "hp", "iterations": 0}, ConfigurationError),
    ],
)
def test_invalid_requests_are_rejected(kwargs, error) -> None:
    with pytest.raises(error):
        StatValueAnalyzer(runner=AlwaysLosing()).calibrate_stat(**kwargs)


def test_real_runner_produces_plausible_hp_weight() -> None:
    rules = CombatRules(calibration=CalibrationRules(passes=2))
    result = StatValueAnalyzer(rules=rules, seed=7).calibrate_stat("hp", increment=10, iterations=40)
    assert 0 <= result.weight <= 20
    assert 0 <= result.confidence <= 1
    assert 0 <= result.linearity <= 1
