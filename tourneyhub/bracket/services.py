"""Service layer for bracket generation and lookup."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from tourneyhub.audit import queue_audit_log
from tourneyhub.auth.utils import display_name, get_caller, require_tournament_manager
from tourneyhub.core.constants import (
    BRACKET_TYPE_SINGLE_ELIMINATION,
    BRACKETS,
    MATCHES,
    TOURNAMENT_LIVE,
    TOURNAMENT_REGISTRATION,
    TOURNAMENTS,
)
from tourneyhub.errors import InvalidStateError, NotFoundError
from tourneyhub.tournament.services import TournamentService

from .entrants import EntrantResolver
from .generator import BracketPlan, plan_bracket
from .models import Bracket, BracketRound, GenerateBracketResult, Match

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


class BracketService:
    """Generates brackets and reads them back."""

    @staticmethod
    def generate_bracket(
        db: Client,
        tournament_id: str,
        caller_id: str | None,
        rng: Optional[random.Random] = None,
    ) -> GenerateBracketResult:
        """Generate and persist the single elimination bracket of a tournament.

        The tournament moves from registration to live in the same transaction
        that writes the matches, so a bracket is generated at most once.
        """
        caller = get_caller(db, caller_id)
        tournament = TournamentService.get_tournament(db, tournament_id)
        require_tournament_manager(caller, tournament, "generate brackets")
        if tournament.get("status") != TOURNAMENT_REGISTRATION:
            raise InvalidStateError(
                "Brackets can only be generated while registration is open."
            )

        entrants = EntrantResolver.resolve(db, tournament_id)
        plan = plan_bracket(entrants, rng)

        bracket_ref = db.collection(BRACKETS).document()
        match_refs = [
            [db.collection(MATCHES).document() for _ in planned_round]
            for planned_round in plan.rounds
        ]
        BracketService._commit_bracket(
            db, tournament_id, caller, plan, bracket_ref, match_refs
        )

        logger.info(
            f"Generated bracket {bracket_ref.id} for tournament {tournament_id}: "
            f"{plan.entrant_count} entrants, {plan.total_matches} matches"
        )
        return GenerateBracketResult(
            bracketId=bracket_ref.id,
            totalEntrants=plan.entrant_count,
            totalMatches=plan.total_matches,
        )

    @staticmethod
    def _commit_bracket(  # noqa: PLR0913
        db: Client,
        tournament_id: str,
        caller: dict[str, Any],
        plan: BracketPlan,
        bracket_ref: DocumentReference,
        match_refs: list[list[DocumentReference]],
    ) -> None:
        """Write the plan, re-checking the tournament status first."""

        @firestore.transactional
        def _write(transaction: Transaction) -> None:
            current = TournamentService.get_tournament(
                db, tournament_id, transaction=transaction
            )
            if current.get("status") != TOURNAMENT_REGISTRATION:
                raise InvalidStateError(
                    "A bracket has already been generated for this tournament."
                )

            rounds: list[BracketRound] = []
            for planned_round, refs in zip(plan.rounds, match_refs):
                for match, ref in zip(planned_round, refs):
                    data = match.fields()
                    data.update(
                        {
                            "tournamentId": tournament_id,
                            "createdAt": firestore.SERVER_TIMESTAMP,
                            "updatedAt": firestore.SERVER_TIMESTAMP,
                        }
                    )
                    if match.winner is not None:
                        data["completedAt"] = firestore.SERVER_TIMESTAMP
                    transaction.set(ref, data)
                rounds.append(
                    {
                        "roundNumber": planned_round[0].round,
                        "matches": [ref.id for ref in refs],
                    }
                )

            transaction.set(
                bracket_ref,
                {
                    "tournamentId": tournament_id,
                    "type": BRACKET_TYPE_SINGLE_ELIMINATION,
                    "rounds": rounds,
                    "isLocked": True,
                    "totalEntrants": plan.entrant_count,
                    "createdAt": firestore.SERVER_TIMESTAMP,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )
            transaction.update(
                db.collection(TOURNAMENTS).document(tournament_id),
                {"status": TOURNAMENT_LIVE, "updatedAt": firestore.SERVER_TIMESTAMP},
            )
            queue_audit_log(
                db,
                transaction,
                action="brackets_generated",
                resource_type="tournament",
                resource_id=tournament_id,
                user_id=caller["uid"],
                user_display_name=display_name(caller),
                new_value={
                    "bracketId": bracket_ref.id,
                    "totalEntrants": plan.entrant_count,
                    "totalMatches": plan.total_matches,
                },
            )

        _write(db.transaction())

    @staticmethod
    def get_bracket_document(db: Client, tournament_id: str) -> Optional[Bracket]:
        """Fetch the bracket document of a tournament, or None."""
        docs = list(
            db.collection(BRACKETS)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .limit(1)
            .stream()
        )
        if not docs:
            return None
        data = cast(Bracket, docs[0].to_dict() or {})
        data["id"] = docs[0].id
        return data

    @staticmethod
    def get_bracket(db: Client, tournament_id: str) -> dict[str, Any]:
        """Return the bracket with its matches grouped by round."""
        bracket = BracketService.get_bracket_document(db, tournament_id)
        if bracket is None:
            raise NotFoundError("Bracket not found.")

        matches: dict[str, Match] = {}
        for doc in (
            db.collection(MATCHES)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .stream()
        ):
            data = cast(Match, doc.to_dict() or {})
            data["id"] = doc.id
            matches[doc.id] = data

        rounds = []
        for bracket_round in sorted(
            bracket.get("rounds", []), key=lambda r: r["roundNumber"]
        ):
            rounds.append(
                {
                    "roundNumber": bracket_round["roundNumber"],
                    "matches": [
                        matches[match_id]
                        for match_id in bracket_round["matches"]
                        if match_id in matches
                    ],
                }
            )
        return {
            "id": bracket["id"],
            "tournamentId": tournament_id,
            "type": bracket.get("type"),
            "isLocked": bracket.get("isLocked", False),
            "totalEntrants": bracket.get("totalEntrants", 0),
            "rounds": rounds,
        }

    @staticmethod
    def final_round(bracket: Bracket) -> int:
        """Number of the last round of a bracket."""
        return max((r["roundNumber"] for r in bracket.get("rounds", [])), default=0)
