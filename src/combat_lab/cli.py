import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from .config import CombatRules
from .errors import CombatLabError, ConfigurationError
from .logging_config import configure_logging
from .rng import RNGStreams
from .simulation import (
    CombatConfig,
    CombatSimulator,
    EntityStats,
    SimulationConfig,
    StatValueAnalyzer,
    run_parallel,
    run_seeded,
)

logger = logging.getLogger(__name__)


def _parse_override(text: str):
    """Parse ``key=value``; the value is read as YAML so numbers and booleans keep their type."""
    key, sep, value = text.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected key=value, got {text!r}")
    return key.strip(), yaml.safe_load(value)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="combat-lab",
        description="combat-lab - turn-based combat simulation and stat calibration",
    )
    parser.add_argument(
        "--rules",
        dest="rules_path",
        type=Path,
        default=None,
        help="Path to a user rules YAML file to load/override defaults.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Run one combat or a Monte Carlo batch.")
    sim.add_argument("--a", dest="entity1", action="append", type=_parse_override, default=[], metavar="KEY=VALUE")
    sim.add_argument("--b", dest="entity2", action="append", type=_parse_override, default=[], metavar="KEY=VALUE")
    sim.add_argument("--name-a", default="Entity 1")
    sim.add_argument("--name-b", default="Entity 2")
    sim.add_argument("--iterations", type=int, default=1)
    sim.add_argument("--seed", type=int, default=0)
    sim.add_argument("--turn-limit", type=int, default=100)
    sim.add_argument("--workers", type=int, default=None, help="Process pool size for batches (default: serial).")
    sim.add_argument("--resolve-timeouts", action="store_true", help="Break turn-limit draws by HP, then damage.")
    sim.add_argument("--samples", action="store_true", help="Include sample combats in batch output.")

    cal = sub.add_parser("calibrate", help="Find the HP value of one or more stats.")
    cal.add_argument("stats", nargs="+", metavar="STAT")
    cal.add_argument("--increment", type=float, default=10)
    cal.add_argument("--iterations", type=int, default=5000)
    cal.add_argument("--seed", type=int, default=0)
    return parser.parse_args(argv)


def _simulate(args, rules: CombatRules) -> dict:
    combat = CombatConfig(
        entity1=EntityStats(name=args.name_a, stats=dict(args.entity1)),
        entity2=EntityStats(name=args.name_b, stats=dict(args.entity2)),
        turn_limit=args.turn_limit,
        enable_detailed_logging=args.iterations == 1,
        resolve_timeouts=args.resolve_timeouts,
    )
    if args.iterations == 1:
        rng = RNGStreams(args.seed).iteration_rng(0)
        return CombatSimulator(rng, rules).simulate(combat).to_dict()

    config = SimulationConfig(combat=combat, iterations=args.iterations)
    if args.workers and args.workers > 1:
        results = run_parallel(config, args.seed, workers=args.workers, rules=rules)
    else:
        results = run_seeded(config, args.seed, rules=rules)
    return results.to_dict(include_samples=args.samples)


def _calibrate(args, rules: CombatRules) -> dict:
    analyzer = StatValueAnalyzer(rules=rules, seed=args.seed)
    results = analyzer.calibrate_many(args.stats, increment=args.increment, iterations=args.iterations)
    return {stat: result.to_dict() for stat, result in results.items()}


def main(argv=None) -> int:
    args = parse_args(argv)
    # JSON goes to stdout, logs to stderr
    configure_logging(level=logging.DEBUG if args.debug else logging.INFO, stream=sys.stderr)

    try:
        rules = CombatRules.load(user_path=args.rules_path)
        if args.command == "simulate":
            if args.iterations <= 0:
                raise ConfigurationError(f"iterations must be positive, got {args.iterations}")
            output = _simulate(args, rules)
        else:
            output = _calibrate(args, rules)
    except CombatLabError as exc:
        logger.error("%s", exc)
        return 2

    json.dump(output, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
