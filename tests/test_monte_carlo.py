import pytest

from combat_lab.config import CombatRules, StatisticsRules
from combat_lab.errors import ConfigurationError
from combat_lab.rng import seeded
from combat_lab.simulation import CombatConfig, EntityStats, SimulationConfig
from combat_lab.simulation.monte_carlo import MonteCarloRunner, confidence_interval, run_parallel, run_seeded


def batch(iterations, a=None, b=None, **kwargs):
    combat = CombatConfig(
        entity1=EntityStats(name="Entity 1", stats=a or {}),
        entity2=EntityStats(name="Entity 2", stats=b or {}),
    )
    return SimulationConfig(combat=combat, iterations=iterations, **kwargs)


def test_confidence_interval_for_even_split():
    low, high = confidence_interval(0.5, 100)
    assert low == pytest.approx(0.402)
    assert high == pytest.approx(0.598)


def test_confidence_interval_is_clamped():
    assert confidence_interval(1.0, 10) == (1.0, 1.0)
    assert confidence_interval(0.0, 10) == (0.0, 0.0)
    assert confidence_interval(0.99, 10)[1] == 1.0
    with pytest.raises(ValueError):
        confidence_interval(0.5, 0)


def test_batch_aggregates_are_consistent():
    results = MonteCarloRunner(seeded(1)).run(batch(200))

    rates = results.summary.win_rates
    assert rates["entity1"] + rates["entity2"] + rates["draws"] == pytest.approx(1.0)
    assert results.summary.total_simulations == 200
    low, high = results.summary.confidence_intervals["entity1"]
    assert low <= rates["entity1"] <= high

    stats = results.combat_statistics
    assert sum(stats.turn_distribution.values()) == 200
    assert stats.min_turns <= stats.median_turns <= stats.max_turns
    assert stats.min_turns <= stats.average_turns <= stats.max_turns

    for side in ("entity1", "entity2"):
        dpt = getattr(results.damage_metrics, side)
        assert 0 <= dpt.min <= dpt.average <= dpt.max
        assert results.damage_metrics.average_overkill[side] >= 0
        assert results.hp_efficiency[side] >= 0


def test_default_log_sample_size_keeps_ten_detailed_combats():
    results = MonteCarloRunner(seeded(2)).run(batch(30))
    assert len(results.sample_combats) == 10
    assert all(c.turn_by_turn_log is not None for c in results.sample_combats)


def test_explicit_log_sample_size():
    assert len(MonteCarloRunner(seeded(2)).run(batch(5, log_sample_size=3)).sample_combats) == 3
    assert MonteCarloRunner(seeded(2)).run(batch(5, log_sample_size=0)).sample_combats == []


def test_progress_callback_fires_on_interval():
    rules = CombatRules(statistics=StatisticsRules(progress_interval=100))
    seen = []
    MonteCarloRunner(seeded(3), rules).run(batch(250), on_progress=seen.append)
    assert seen == [pytest.approx(0.4), pytest.approx(0.8)]


def test_non_positive_iterations_rejected():
    with pytest.raises(ConfigurationError):
        batch(0)


def test_seeded_runs_are_reproducible():
    first = run_seeded(batch(40), seed=11)
    second = run_seeded(batch(40), seed=11)
    assert first == second
    assert run_seeded(batch(40), seed=12).to_dict() != first.to_dict()


def test_parallel_matches_serial():
    config = batch(60, b={"armor": 10})
    serial = run_seeded(config, seed=2024)
    parallel = run_parallel(config, seed=2024, workers=2, chunk_size=16)

    assert parallel.to_dict() == serial.to_dict()


def test_single_worker_runs_in_process():
    config = batch(20)
    assert run_parallel(config, seed=5, workers=1) == run_seeded(config, seed=5)


@pytest.mark.parametrize(
    "stat, amount",
    [("hp", 50), ("damage", 10), ("armor", 50), ("evasion", 25), ("txc", 25)],
)
def test_improving_a_stat_wins_more_often(stat, amount):
    baseline = CombatRules().baseline
    results = run_seeded(batch(2000, a={stat: baseline.get(stat) + amount}), seed=99)
    assert results.summary.win_rates["entity1"] > 0.55
