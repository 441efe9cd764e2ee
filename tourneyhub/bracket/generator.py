"""Single elimination bracket planning.

Everything here is pure: a plan is computed from the entrant list and a random
source, and the service layer persists it.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Optional

from tourneyhub.core.constants import MIN_ENTRANTS

from .models import BYE, Entrant, MatchStatus, Slot

TEAM1 = "team1"
TEAM2 = "team2"


def bracket_size(num_entrants: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_entrants < 1:
        raise ValueError("A bracket needs at least one entrant.")
    return 2 ** math.ceil(math.log2(num_entrants))


def total_rounds(size: int) -> int:
    """Number of rounds in a bracket of the given size."""
    return int(math.log2(size))


def next_slot(round_number: int, position: int) -> tuple[int, int, str]:
    """Return (round, position, side) that the winner of a match moves into.

    Even positions feed ``team1`` of the next match, odd positions ``team2``.
    """
    side = TEAM1 if position % 2 == 0 else TEAM2
    return round_number + 1, position // 2, side


def shuffle_entrants(
    entrants: list[Entrant], rng: Optional[random.Random] = None
) -> list[Entrant]:
    """Return a uniformly shuffled copy of the entrants."""
    rng = rng or random.SystemRandom()
    shuffled = list(entrants)
    # random.shuffle is a Fisher-Yates shuffle
    rng.shuffle(shuffled)
    return shuffled


def bye_positions(matches_in_round: int, byes: int) -> set[int]:
    """Spread byes evenly over the first-round matches, one per match at most."""
    if byes > matches_in_round:
        raise ValueError("More byes than first-round matches.")
    if byes == 0:
        return set()
    return {i * matches_in_round // byes for i in range(byes)}


def pad_with_byes(entrants: list[Entrant], size: int) -> list[Slot]:
    """Lay the entrants out over ``size`` first-round slots.

    A bye always takes the ``team2`` slot of its match, opposite a real
    entrant, so no first-round match is ever bye against bye.
    """
    matches_in_round = size // 2
    byes = size - len(entrants)
    if byes < 0:
        raise ValueError("Bracket size is smaller than the entrant count.")
    bye_at = bye_positions(matches_in_round, byes)

    slots: list[Slot] = []
    remaining = iter(entrants)
    for position in range(matches_in_round):
        slots.append(next(remaining))
        slots.append(BYE if position in bye_at else next(remaining))
    return slots


@dataclass
class PlannedMatch:
    """A match of the plan, before it has a document id."""

    round: int
    position: int
    team1: Optional[Entrant] = None
    team2: Optional[Entrant] = None
    status: MatchStatus = MatchStatus.UPCOMING
    winner: Optional[Entrant] = None
    is_bye: bool = False

    def place(self, side: str, entrant: Entrant) -> None:
        """Put an entrant into one side of the match."""
        setattr(self, side, entrant)

    def fields(self) -> dict:
        """Match document fields describing this planned match."""
        data: dict = {
            "round": self.round,
            "position": self.position,
            "status": self.status.value,
            "isBye": self.is_bye,
        }
        for side in (TEAM1, TEAM2):
            entrant = getattr(self, side)
            if entrant is not None:
                data[f"{side}Id"] = entrant.entity_id
                data[f"{side}Name"] = entrant.display_name
        if self.winner is not None:
            data["winnerId"] = self.winner.entity_id
            data["winnerName"] = self.winner.display_name
        return data


@dataclass
class BracketPlan:
    """Complete layout of a single elimination bracket."""

    size: int
    entrant_count: int
    rounds: list[list[PlannedMatch]] = field(default_factory=list)

    @property
    def total_rounds(self) -> int:
        return len(self.rounds)

    @property
    def matches(self) -> list[PlannedMatch]:
        return [match for planned_round in self.rounds for match in planned_round]

    @property
    def total_matches(self) -> int:
        return self.size - 1


def _resolve_first_round(plan: BracketPlan, slots: list[Slot]) -> None:
    for match in plan.rounds[0]:
        pair = (slots[2 * match.position], slots[2 * match.position + 1])
        players = [slot for slot in pair if isinstance(slot, Entrant)]
        match.team1 = pair[0] if isinstance(pair[0], Entrant) else None
        match.team2 = pair[1] if isinstance(pair[1], Entrant) else None
        if len(players) != 1:
            continue

        # Bye: the lone entrant wins outright and moves straight on
        winner = players[0]
        match.is_bye = True
        match.status = MatchStatus.COMPLETED
        match.winner = winner
        if plan.total_rounds > 1:
            next_round, next_position, side = next_slot(match.round, match.position)
            plan.rounds[next_round - 1][next_position].place(side, winner)


def plan_bracket(
    entrants: list[Entrant], rng: Optional[random.Random] = None
) -> BracketPlan:
    """Shuffle, pad and lay out every round of the bracket."""
    if len(entrants) < MIN_ENTRANTS:
        raise ValueError(f"At least {MIN_ENTRANTS} entrants are required.")

    shuffled = shuffle_entrants(entrants, rng)
    size = bracket_size(len(shuffled))
    plan = BracketPlan(size=size, entrant_count=len(shuffled))
    for round_number in range(1, total_rounds(size) + 1):
        matches_in_round = size // 2**round_number
        plan.rounds.append(
            [PlannedMatch(round_number, pos) for pos in range(matches_in_round)]
        )

    _resolve_first_round(plan, pad_with_byes(shuffled, size))
    return plan
