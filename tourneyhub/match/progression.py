"""Moves match winners through the bracket.

Completion events may be delivered more than once, so advancing a winner is
idempotent: writing the same winner into a slot twice is a no-op, and a slot
that already holds a different entrant is never overwritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from firebase_admin import firestore

from tourneyhub.audit import queue_audit_log
from tourneyhub.bracket.generator import next_slot
from tourneyhub.bracket.models import Bracket, MatchStatus
from tourneyhub.bracket.services import BracketService
from tourneyhub.core.constants import MATCHES
from tourneyhub.errors import (
    AppError,
    IntegrityError,
    InvalidStateError,
    NotFoundError,
)
from tourneyhub.tournament.settlement import SettlementService

from .services import MatchService, match_sides

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

    from tourneyhub.tasks.events import MatchCompleted

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """What handling a completed match did."""

    ADVANCED = "advanced"
    ALREADY_ADVANCED = "already_advanced"
    SETTLED = "settled"
    ALREADY_SETTLED = "already_settled"


@dataclass
class ProgressionOutcome:
    """Result of handling one completed match."""

    outcome: Outcome
    match_id: str
    next_match_id: Optional[str] = None
    slot: Optional[str] = None


def _next_match_id(bracket: Bracket, round_number: int, position: int) -> str:
    """Look up the id of the match at (round, position) in the bracket."""
    for bracket_round in bracket.get("rounds", []):
        if bracket_round["roundNumber"] == round_number:
            match_ids = bracket_round["matches"]
            if 0 <= position < len(match_ids):
                return match_ids[position]
            break
    raise IntegrityError(
        f"Bracket {bracket.get('id')} has no match at round {round_number}, "
        f"position {position}."
    )


class ProgressionService:
    """Reacts to completed matches."""

    @staticmethod
    def handle_match_completed(db: Client, match_id: str) -> ProgressionOutcome:
        """Advance the winner of a completed match, or settle the final."""
        match = MatchService.get_match(db, match_id)
        if match.get("status") != MatchStatus.COMPLETED.value:
            raise InvalidStateError(f"Match {match_id} is not completed.")
        winner_id = match.get("winnerId")
        if not winner_id or winner_id not in match_sides(match):
            raise InvalidStateError(
                f"Match {match_id} has no winner among its sides."
            )

        tournament_id = match["tournamentId"]
        bracket = BracketService.get_bracket_document(db, tournament_id)
        if bracket is None:
            raise NotFoundError(f"No bracket for tournament {tournament_id}.")

        if match["round"] >= BracketService.final_round(bracket):
            settled = SettlementService.settle(db, tournament_id, match)
            return ProgressionOutcome(
                Outcome.SETTLED if settled else Outcome.ALREADY_SETTLED, match_id
            )

        next_round, next_position, side = next_slot(match["round"], match["position"])
        next_match_id = _next_match_id(bracket, next_round, next_position)
        advanced = ProgressionService._advance(
            db, match, next_match_id, next_round, next_position, side
        )
        return ProgressionOutcome(
            Outcome.ADVANCED if advanced else Outcome.ALREADY_ADVANCED,
            match_id,
            next_match_id=next_match_id,
            slot=side,
        )

    @staticmethod
    def _advance(  # noqa: PLR0913
        db: Client,
        match: dict[str, Any],
        next_match_id: str,
        next_round: int,
        next_position: int,
        side: str,
    ) -> bool:
        """Write the winner into the next match's slot.

        Returns False when the slot already held this winner.
        """
        winner_id = match["winnerId"]
        winner_name = match.get("winnerName") or winner_id

        @firestore.transactional
        def _write(transaction: Transaction) -> bool:
            next_match = MatchService.get_match(
                db, next_match_id, transaction=transaction
            )
            if (
                next_match.get("round") != next_round
                or next_match.get("position") != next_position
            ):
                raise IntegrityError(
                    f"Match {next_match_id} is not at round {next_round}, "
                    f"position {next_position}."
                )

            occupant = next_match.get(f"{side}Id")
            if occupant == winner_id:
                return False
            if occupant:
                logger.error(
                    f"Refusing to advance {winner_id} from match {match['id']}: "
                    f"{side} of match {next_match_id} already holds {occupant}"
                )
                raise InvalidStateError(
                    f"Slot {side} of match {next_match_id} is already taken."
                )

            transaction.update(
                db.collection(MATCHES).document(next_match_id),
                {
                    f"{side}Id": winner_id,
                    f"{side}Name": winner_name,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )
            queue_audit_log(
                db,
                transaction,
                action="match_advanced",
                resource_type="match",
                resource_id=next_match_id,
                old_value={"fromMatchId": match["id"]},
                new_value={"slot": side, "entrantId": winner_id},
            )
            return True

        advanced = _write(db.transaction())
        if advanced:
            logger.info(
                f"Advanced {winner_id} from match {match['id']} to {side} of "
                f"match {next_match_id} (tournament {match['tournamentId']})"
            )
        else:
            logger.info(
                f"Match {match['id']} winner already in match {next_match_id}"
            )
        return advanced

    @staticmethod
    def process_event(
        db: Client, event: MatchCompleted
    ) -> Optional[ProgressionOutcome]:
        """Background entry point: handle an event, logging instead of raising."""
        try:
            return ProgressionService.handle_match_completed(db, event.match_id)
        except AppError as e:
            logger.warning(
                f"Could not process completion of match {event.match_id} "
                f"(tournament {event.tournament_id}): {e.message}"
            )
        except Exception:
            logger.exception(
                f"Unexpected error processing completion of match {event.match_id} "
                f"(tournament {event.tournament_id})"
            )
        return None
