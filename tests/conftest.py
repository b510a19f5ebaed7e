import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from combat_lab.config import CombatRules  # noqa: E402


class ScriptedRNG:
    """Replays a fixed list of draws and fails loudly when it runs dry."""

    def __init__(self, values):
        self._values = list(values)
        self.calls = 0

    def __call__(self) -> float:
        if self.calls >= len(self._values):
            raise AssertionError(f"RNG exhausted after {self.calls} draws")
        value = self._values[self.calls]
        self.calls += 1
        return value

    @property
    def remaining(self) -> int:
        return len(self._values) - self.calls


@pytest.fixture
def rules():
    return CombatRules()


@pytest.fixture
def scripted_rng():
    return ScriptedRNG
