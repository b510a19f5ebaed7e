from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Protocol, Union

from ..rng import RNG

logger = logging.getLogger(__name__)

INITIATIVE_SCALE = 10


class SupportsInitiative(Protocol):
    """Protocol for anything that can roll initiative.

    An actor must expose:
    - id: a stable identifier reported back in the roll
    - agility: numeric base initiative (higher acts earlier)
    """

    id: Union[str, int]
    agility: Union[int, float]


@dataclass(frozen=True)
class InitiativeCandidate:
    """A minimal concrete candidate for callers that only have (id, agility) pairs."""

    id: Union[str, int]
    agility: Union[int, float]


@dataclass(frozen=True)
class InitiativeRoll:
    """One character's initiative for a round.

    Attributes:
        character_id: Identifier of the rolling character.
        base_agility: Agility before variance.
        variance: The raw RNG draw used for this roll.
        total_initiative: ``base_agility + variance * scale``.
    """

    character_id: Union[str, int]
    base_agility: float
    variance: float
    total_initiative: float


def calculate_initiative(agility: float, variance: float, scale: float = INITIATIVE_SCALE) -> float:
    """Initiative = agility + variance * scale.

    ``variance`` is expected in [0, 1) but is not clamped: a misbehaving
    source producing negative or >1 draws yields the plain
    formula result.
    """
    return agility + variance * scale


def generate_detailed_rolls(
    characters: Iterable[SupportsInitiative],
    rng: RNG,
    scale: float = INITIATIVE_SCALE,
) -> List[InitiativeRoll]:
    """Roll initiative for every character and sort descending.

    Draws exactly one value per character, in input order, before sorting.
    Ties keep their input order (Python's sort is stable), which keeps turn
    order reproducible for a fixed RNG stream.
    """
    rolls: List[InitiativeRoll] = []
    for char in characters:
        variance = rng()
        rolls.append(
            InitiativeRoll(
                character_id=char.id,
                base_agility=char.agility,
                variance=variance,
                total_initiative=calculate_initiative(char.agility, variance, scale),
            )
        )
    rolls.sort(key=lambda r: r.total_initiative, reverse=True)
    logger.debug("Initiative rolls: %s", rolls)
    return rolls


def generate_turn_order(
    characters: Iterable[SupportsInitiative],
    rng: RNG,
    scale: float = INITIATIVE_SCALE,
) -> List[Union[str, int]]:
    """Return character ids ordered by initiative, highest first."""
    return [roll.character_id for roll in generate_detailed_rolls(characters, rng, scale)]


__all__ = [
    "SupportsInitiative",
    "InitiativeCandidate",
    "InitiativeRoll",
    "calculate_initiative",
    "generate_detailed_rolls",
    "generate_turn_order",
]
