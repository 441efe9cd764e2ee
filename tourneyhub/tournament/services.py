"""Service layer for tournament lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from tourneyhub.core.constants import TOURNAMENTS
from tourneyhub.errors import NotFoundError

from .models import Tournament

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction


class TournamentService:
    """Handles data access for tournaments."""

    @staticmethod
    def get_tournament(
        db: Client, tournament_id: str, transaction: Transaction | None = None
    ) -> Tournament:
        """Fetch a tournament by ID or raise NotFoundError."""
        ref = db.collection(TOURNAMENTS).document(tournament_id)
        doc = cast("DocumentSnapshot", ref.get(transaction=transaction))
        if not doc.exists:
            raise NotFoundError("Tournament not found.")
        data = cast(Tournament, doc.to_dict() or {})
        data["id"] = tournament_id
        return data

    @staticmethod
    def first_place_percentage(tournament: dict[str, Any]) -> float:
        """Return the prize percentage of the position-1 entry, 0 when absent."""
        for entry in tournament.get("prizeDistribution") or []:
            if entry and int(entry.get("position", 0)) == 1:
                return float(entry.get("percentage") or 0)
        return 0.0

    @staticmethod
    def winner_earnings(tournament: dict[str, Any]) -> float:
        """Prize money credited to the tournament winner."""
        prize_pool = float(tournament.get("prizePool") or 0)
        return prize_pool * TournamentService.first_place_percentage(tournament) / 100
