from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CombatEvent:
    """A log event emitted during combat.

    Common event types: "info", "initiative", "regen", "dot", "hot", "stun",
    "buff", "debuff", "miss", "crit", "attack", "heal", "death".
    """

    turn: int
    type: str
    message: str
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"turn": self.turn, "type": self.type, "message": self.message, "data": dict(self.data or {})}


class CombatLog:
    """Append-only in-memory combat log."""

    def __init__(self) -> None:
        self._events: List[CombatEvent] = []

    def add(self, turn: int, event_type: str, message: str, **data: Any) -> CombatEvent:
        ev = CombatEvent(turn=turn, type=event_type, message=message, data=data or None)
        self._events.append(ev)
        logger.debug(message)
        return ev

    def events(self, event_type: Optional[str] = None) -> List[CombatEvent]:
        if event_type is None:
            return list(self._events)
        return [e for e in self._events if e.type == event_type]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[CombatEvent]:
        return iter(self._events)
