from __future__ import annotations

import pytest

from combat_lab.errors import ConfigurationError
from combat_lab.rng import RNGStreams, lcg, seeded


def test_lcg_is_deterministic_and_in_range() -> None:
    a, b = lcg(42), lcg(42)
    draws = [a() for _ in range(100)]
    assert draws == [b() for _ in range(100)]
    assert all(0.0 <= x < 1.0 for x in draws)
    assert lcg(43)() != lcg(42)()


def test_seeded_wraps_random() -> None:
    assert seeded(1)() == seeded(1)()


def test_derived_seeds_are_stable_and_distinct() -> None:
    streams = RNGStreams(1234)
    assert streams.derive_seed("combat", 0) == RNGStreams(1234).derive_seed("combat", 0)
    assert streams.derive_seed("combat", 0) != streams.derive_seed("combat", 1)
    assert streams.derive_seed("combat", 0) != streams.derive_seed("calibration", 0)
    assert RNGStreams(1).derive_seed("combat") != RNGStreams(-1).derive_seed("combat")


def test_iteration_streams_do_not_depend_on_order() -> None:
    streams = RNGStreams("batch")
    late_first = [streams.iteration_rng(i)() for i in (3, 2, 1, 0)]
    in_order = [streams.iteration_rng(i)() for i in range(4)]
    assert late_first == list(reversed(in_order))


def test_hex_string_seed_matches_int() -> None:
    assert RNGStreams("0xff").get_master_seed_hex() == RNGStreams(255).get_master_seed_hex()


@pytest.mark.parametrize("seed", [None, True, 1.5])
def test_unusable_seeds_are_refused(seed) -> None:
    with pytest.raises(ConfigurationError):
        RNGStreams(seed)
