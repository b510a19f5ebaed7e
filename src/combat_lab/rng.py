from __future__ import annotations

import hashlib
import json
import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# A random source is a plain callable returning floats in [0, 1).
RNG = Callable[[], float]

_LCG_MULTIPLIER = 1664525
_LCG_INCREMENT = 1013904223
_LCG_MODULUS = 2**32


def _to_stable_json(value: Any) -> str:
    """Stable JSON encoding for hashing.

    Ensures consistent ordering and representation across runs and Python versions
    (for basic types). This is critical to make seed derivation deterministic.
    """
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def lcg(seed: int) -> RNG:
    """Return a tiny linear congruential generator as an RNG callable.

    Useful for tests that need an easily reproducible stream independent of
    the interpreter's Mersenne Twister implementation.
    """
    state = int(seed) % _LCG_MODULUS

    def _next() -> float:
        nonlocal state
        state = (state * _LCG_MULTIPLIER + _LCG_INCREMENT) % _LCG_MODULUS
        return state / _LCG_MODULUS

    return _next


def seeded(seed: int) -> RNG:
    """Return the ``random`` method of a freshly seeded ``random.Random``."""
    return random.Random(seed).random


@dataclass(frozen=True)
class RNGStreams:
    """Deterministic per-iteration RNG streams derived from a master seed.

    Batch runs that fan out across workers must not share one generator; each
    iteration gets its own stream derived from (master seed, domain, index), so
    the result of iteration ``i`` never depends on scheduling order.

    Usage pattern:
        streams = RNGStreams(1234)
        rng = streams.iteration_rng(17)   # callable -> float in [0, 1)

    The master seed can be an int, str, or bytes. It is canonicalized to bytes and
    hashed with BLAKE2b into 64-bit integer seeds for downstream random.Random
    instances. An unseeded stream is refused.
    """

    master_seed: Union[int, str, bytes]

    def __post_init__(self) -> None:
        if self.master_seed is None:
            raise ConfigurationError("RNGStreams requires an explicit master seed")
        object.__setattr__(self, "_master_seed_bytes", self._canonicalize_seed(self.master_seed))
        logger.debug("Using master seed: %r", self.master_seed)

    @staticmethod
    def _canonicalize_seed(seed: Optional[Union[int, str, bytes]]) -> bytes:
        if isinstance(seed, bytes):
            return seed
        if isinstance(seed, bool):
            raise ConfigurationError("Unsupported seed type: %r" % (type(seed),))
        if isinstance(seed, int):
            # Sign is folded into the payload so -1 and 1 stay distinct
            sign = b"-" if seed < 0 else b""
            magnitude = abs(seed)
            length = (magnitude.bit_length() + 7) // 8 or 1
            return sign + magnitude.to_bytes(length, "big", signed=False)
        if isinstance(seed, str):
            s = seed.strip()
            if s.startswith("0x"):
                try:
                    val = int(s, 16)
                    length = (val.bit_length() + 7) // 8 or 1
                    return val.to_bytes(length, "big", signed=False)
                except ValueError:
                    return s.encode("utf-8")
            return s.encode("utf-8")
        raise ConfigurationError("Unsupported seed type: %r" % (type(seed),))

    def derive_seed(self, domain: str, *identifiers: Any) -> int:
        """Derive a 64-bit integer seed from master seed and domain identifiers.

        Domain examples: "combat", "calibration".
        Identifiers are typically an iteration index or a pass number.
        """
        payload = {
            "domain": domain,
            "ids": identifiers,
            "master": self._master_seed_bytes.hex(),
            "algo": "blake2b-64",
            "version": 1,
        }
        data = _to_stable_json(payload).encode("utf-8")
        h = hashlib.blake2b(data, digest_size=8)
        seed_int = int.from_bytes(h.digest(), "big", signed=False)
        logger.debug("Derived seed for domain=%s ids=%s -> %d", domain, identifiers, seed_int)
        return seed_int

    def context_rng(self, domain: str, *identifiers: Any) -> random.Random:
        return random.Random(self.derive_seed(domain, *identifiers))

    def iteration_rng(self, index: int, domain: str = "combat") -> RNG:
        """Return the RNG callable for batch iteration ``index``."""
        return self.context_rng(domain, index).random

    def get_master_seed_hex(self) -> str:
        return self._master_seed_bytes.hex()


__all__ = ["RNG", "RNGStreams", "lcg", "seeded"]
