"""Damage and heal over time.

Periodic effects tick at the start of a round, before anyone acts. How a
re-application of the same effect (same source and id) combines with the
instance already present is decided by its stack mode:

- ``none``: refresh duration to the new one; stacks stay at 1.
- ``separate``: always a new independent instance.
- ``increment``: +1 stack, duration untouched.
- ``increment_refresh``: +1 stack, duration becomes the longer of the two.
- ``increment_capped``: like ``increment_refresh`` but stacks stop at ``max_stacks``.

All functions return new lists and never mutate their inputs.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence

logger = logging.getLogger(__name__)


class StackMode(str, Enum):
    NONE = "none"
    SEPARATE = "separate"
    INCREMENT = "increment"
    INCREMENT_REFRESH = "increment_refresh"
    INCREMENT_CAPPED = "increment_capped"


class PeriodicType(str, Enum):
    DAMAGE = "damage"
    HEAL = "heal"


@dataclass(frozen=True)
class PeriodicEffect:
    """A DoT or HoT instance.

    ``amount_per_turn`` is signed as authored (DoTs are usually negative); the
    ``type`` decides whether it is reported as damage or healing.
    """

    id: str
    source: str
    type: PeriodicType
    amount_per_turn: float
    duration: int
    stack_mode: StackMode = StackMode.NONE
    max_stacks: Optional[int] = None
    current_stacks: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", PeriodicType(self.type))
        object.__setattr__(self, "stack_mode", StackMode(self.stack_mode))


class PeriodicTotals(NamedTuple):
    damage: float
    heal: float


class TickResult(NamedTuple):
    new_hp: float
    actual_amount: float


def _find(effects: Sequence[PeriodicEffect], new_effect: PeriodicEffect) -> int:
    for index, effect in enumerate(effects):
        if effect.source == new_effect.source and effect.id == new_effect.id:
            return index
    return -1


def add_effect(effects: Sequence[PeriodicEffect], new_effect: PeriodicEffect) -> List[PeriodicEffect]:
    """Apply ``new_effect`` to ``effects`` according to its stack mode."""
    mode = new_effect.stack_mode
    first_application = dataclasses.replace(new_effect, current_stacks=1)

    if mode is StackMode.SEPARATE:
        return [*effects, first_application]

    index = _find(effects, new_effect)
    if index == -1:
        return [*effects, first_application]

    existing = effects[index]
    if mode is StackMode.NONE:
        updated = dataclasses.replace(existing, duration=new_effect.duration)
    else:
        stacks = existing.current_stacks + 1
        if mode is StackMode.INCREMENT_CAPPED and new_effect.max_stacks is not None:
            stacks = min(stacks, new_effect.max_stacks)
        if mode is StackMode.INCREMENT:
            duration = existing.duration
        else:
            duration = max(existing.duration, new_effect.duration)
        updated = dataclasses.replace(existing, current_stacks=stacks, duration=duration)

    logger.debug("Re-applied %s (%s): stacks=%d duration=%d", updated.id, mode.value, updated.current_stacks, updated.duration)
    result = list(effects)
    result[index] = updated
    return result


def tick_durations(effects: Sequence[PeriodicEffect]) -> List[PeriodicEffect]:
    """Decrement every duration by one and drop effects that reach zero."""
    ticked = (dataclasses.replace(e, duration=e.duration - 1) for e in effects)
    return [e for e in ticked if e.duration > 0]


def calculate_total_per_turn(effects: Sequence[PeriodicEffect]) -> PeriodicTotals:
    """Sum ``amount_per_turn * stacks`` per type; damage as a magnitude, heal signed."""
    damage = 0.0
    heal = 0.0
    for effect in effects:
        amount = effect.amount_per_turn * effect.current_stacks
        if effect.type is PeriodicType.DAMAGE:
            damage += abs(amount)
        else:
            heal += amount
    return PeriodicTotals(damage=damage, heal=heal)


def calculate_total_value(amount_per_turn: float, duration: int, stacks: int = 1) -> float:
    """Lifetime value of a periodic effect, used when pricing spells."""
    return abs(amount_per_turn) * duration * stacks


def apply_tick(current_hp: float, amount_per_turn: float, max_hp: float) -> TickResult:
    """Apply one signed tick, bounded to [0, max_hp].

    Positive amounts heal, others damage; ``actual_amount`` keeps the sign.
    """
    if amount_per_turn > 0:
        healed = max(0.0, min(amount_per_turn, max_hp - current_hp))
        return TickResult(new_hp=current_hp + healed, actual_amount=healed)
    dealt = max(0.0, min(abs(amount_per_turn), current_hp))
    return TickResult(new_hp=current_hp - dealt, actual_amount=-dealt)


__all__ = [
    "StackMode",
    "PeriodicType",
    "PeriodicEffect",
    "PeriodicTotals",
    "TickResult",
    "add_effect",
    "tick_durations",
    "calculate_total_per_turn",
    "calculate_total_value",
    "apply_tick",
]
