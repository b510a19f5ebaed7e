from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .errors import ConfigurationError
from .stats import normalize_stat_key, validate_stat_key


@dataclass(frozen=True)
class Spell:
    """A castable buff or debuff.

    Attributes:
        name: Display name, also the identity used when the spell is re-cast.
        kind: "buff" (targets the caster) or "debuff" (targets the enemy).
        target_stat: StatBlock field the spell modifies.
        effect: Percentage magnitude; debuffs apply it as a reduction.
        duration: Rounds the modifier stays active.
    """

    name: str
    kind: str
    target_stat: str
    effect: float
    duration: int

    def __post_init__(self) -> None:
        if self.kind not in ("buff", "debuff"):
            raise ConfigurationError(f"Spell '{self.name}' has unsupported kind '{self.kind}'")
        object.__setattr__(self, "target_stat", validate_stat_key(self.target_stat))
        if self.duration <= 0:
            raise ConfigurationError(f"Spell '{self.name}' must last at least one round")

    @property
    def signed_effect(self) -> float:
        return self.effect if self.kind == "buff" else -abs(self.effect)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Spell":
        """Build from a spell descriptor (``type``/``targetStat``/``eco`` keys accepted)."""
        try:
            return cls(
                name=data["name"],
                kind=data.get("kind", data.get("type")),
                target_stat=normalize_stat_key(data.get("target_stat", data.get("targetStat"))),
                effect=float(data["effect"]),
                duration=int(data.get("duration", data.get("eco"))),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError(f"Malformed spell descriptor {dict(data)!r}: {exc}") from exc


__all__ = ["Spell"]
