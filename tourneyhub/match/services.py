"""Service layer for match lookup and result reporting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from tourneyhub.audit import queue_audit_log
from tourneyhub.auth.utils import display_name, get_caller, require_tournament_manager
from tourneyhub.bracket.models import Match, MatchStatus
from tourneyhub.core.constants import MATCHES, TOURNAMENT_LIVE
from tourneyhub.errors import InvalidStateError, NotFoundError, ValidationError
from tourneyhub.tournament.services import TournamentService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


def match_sides(match: dict[str, Any]) -> dict[str, str]:
    """Map the entity ids occupying a match to their display names."""
    sides = {}
    for side in ("team1", "team2"):
        entity_id = match.get(f"{side}Id")
        if entity_id:
            sides[entity_id] = match.get(f"{side}Name") or entity_id
    return sides


class MatchService:
    """Handles data access and result reporting for bracket matches."""

    @staticmethod
    def get_match(
        db: Client, match_id: str, transaction: Transaction | None = None
    ) -> Match:
        """Fetch a match by ID or raise NotFoundError."""
        doc = cast(
            "DocumentSnapshot",
            db.collection(MATCHES).document(match_id).get(transaction=transaction),
        )
        if not doc.exists:
            raise NotFoundError("Match not found.")
        data = cast(Match, doc.to_dict() or {})
        data["id"] = match_id
        return data

    @staticmethod
    def report_result(  # noqa: PLR0913
        db: Client,
        match_id: str,
        caller_id: str | None,
        winner_id: str,
        team1_score: Optional[int] = None,
        team2_score: Optional[int] = None,
    ) -> Match:
        """Record the winner of a match and mark it completed.

        Only the tournament organizer or an admin may report. Returns the
        updated match.
        """
        caller = get_caller(db, caller_id)
        match = MatchService.get_match(db, match_id)
        tournament = TournamentService.get_tournament(db, match["tournamentId"])
        require_tournament_manager(caller, tournament, "report match results")
        if tournament.get("status") != TOURNAMENT_LIVE:
            raise InvalidStateError(
                "Results can only be reported for live tournaments."
            )

        update_data: dict[str, Any] = {}

        @firestore.transactional
        def _complete(transaction: Transaction) -> None:
            current = MatchService.get_match(db, match_id, transaction=transaction)
            if current.get("status") == MatchStatus.COMPLETED.value:
                raise InvalidStateError("This match has already been completed.")
            sides = match_sides(current)
            if len(sides) < 2:  # noqa: PLR2004
                raise InvalidStateError(
                    "Both sides of the match must be decided first."
                )
            if winner_id not in sides:
                raise ValidationError("The winner must be one of the match's sides.")

            update_data.update(
                {
                    "status": MatchStatus.COMPLETED.value,
                    "winnerId": winner_id,
                    "winnerName": sides[winner_id],
                    "completedAt": firestore.SERVER_TIMESTAMP,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                }
            )
            if team1_score is not None and team2_score is not None:
                update_data["scores"] = {
                    "team1Score": team1_score,
                    "team2Score": team2_score,
                }
            transaction.update(db.collection(MATCHES).document(match_id), update_data)
            queue_audit_log(
                db,
                transaction,
                action="match_reported",
                resource_type="match",
                resource_id=match_id,
                user_id=caller["uid"],
                user_display_name=display_name(caller),
                old_value={"status": current.get("status")},
                new_value={"winnerId": winner_id, "scores": update_data.get("scores")},
            )

        _complete(db.transaction())
        logger.info(
            f"Match {match_id} in tournament {match['tournamentId']} "
            f"reported with winner {winner_id}"
        )
        match.update(update_data)
        return match
