from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..spells import Spell
from ..stats import StatBlock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegacyProfile:
    """Attribute-era stats for combatants that have no StatBlock.

    Only the simple variance-based fallback path uses these; calibration never does.
    """

    max_hp: int
    attack_power: float
    defense: float = 0
    crit_chance: float = 0.05
    weapon_damage: float = 0
    speed: Optional[float] = None


@dataclass
class Combatant:
    """
    A combatant within a single combat.

    Attributes:
        id: Stable identifier, used as key for effects and metrics.
        name: Display name.
        team: "A" or "B".
        stat_block: Immutable stats; never mutated by combat.
        legacy: Fallback profile used when no stat_block is set.
        spells: Castable buffs/debuffs.
        current_hp: The only field combat mutates.
    """

    id: str
    name: str
    team: str
    stat_block: Optional[StatBlock] = None
    legacy: Optional[LegacyProfile] = None
    spells: List[Spell] = field(default_factory=list)
    current_hp: float = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.stat_block is None and self.legacy is None:
            raise ValueError(f"Combatant {self.id!r} needs a stat_block or a legacy profile")
        if self.current_hp is None:
            self.current_hp = self.max_hp

    @classmethod
    def from_stat_block(cls, id: str, name: str, team: str, stat_block: StatBlock, spells=None) -> "Combatant":
        return cls(id=id, name=name, team=team, stat_block=stat_block, spells=list(spells or []))

    @property
    def max_hp(self) -> float:
        if self.stat_block is not None:
            return self.stat_block.hp
        return self.legacy.max_hp

    @property
    def is_alive(self) -> bool:
        return self.current_hp > 0

    def agility(self, legacy_speed: float) -> float:
        if self.stat_block is not None:
            return self.stat_block.agility
        if self.legacy.speed is not None:
            return self.legacy.speed
        return legacy_speed

    def take_damage(self, amount: float) -> float:
        """Reduce HP by ``amount`` (floored at 0). Returns the HP actually lost."""
        if amount < 0:
            raise ValueError("Damage amount cannot be negative.")
        before = self.current_hp
        self.current_hp = max(0, self.current_hp - amount)
        return before - self.current_hp

    def heal(self, amount: float) -> float:
        """Heal up to max HP. Returns actual healed amount; the dead are not healed."""
        if amount < 0:
            raise ValueError("Heal amount cannot be negative.")
        if not self.is_alive:
            return 0
        before = self.current_hp
        self.current_hp = min(self.max_hp, self.current_hp + amount)
        return self.current_hp - before

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"Combatant(id={self.id!r}, name={self.name!r}, team={self.team!r}, hp={self.current_hp}/{self.max_hp})"
