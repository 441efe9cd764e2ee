"""Periodic reveal of in-game room credentials."""

from __future__ import annotations

import datetime
import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Optional

from firebase_admin import firestore

from tourneyhub.audit import queue_audit_log
from tourneyhub.core.constants import (
    ROOM_REVEAL_LEAD_MINUTES,
    TOURNAMENT_LIVE,
    TOURNAMENTS,
)
from tourneyhub.notifications import MATCH_START, NotificationService
from tourneyhub.registration.services import RegistrationService

from .services import TournamentService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    """Counts from one reveal sweep."""

    tournaments: int = 0
    revealed: int = 0
    notified: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _as_datetime(value: Any) -> Optional[datetime.datetime]:
    """Normalize a stored timestamp to an aware datetime."""
    if isinstance(value, str):
        try:
            value = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime.datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return value


def is_due(room: Optional[dict[str, Any]], threshold: datetime.datetime) -> bool:
    """Return True for an unrevealed room visible at or before the threshold."""
    if not room or room.get("revealed"):
        return False
    visible_from = _as_datetime(room.get("visibleFrom"))
    return visible_from is not None and visible_from <= threshold


class RoomRevealService:
    """Reveals room credentials to approved entrants, once per tournament."""

    @staticmethod
    def sweep(
        db: Client,
        now: Optional[datetime.datetime] = None,
        lead: Optional[datetime.timedelta] = None,
    ) -> SweepReport:
        """Reveal every due room of a live tournament and notify its entrants.

        A failure on one tournament is logged and counted; the sweep carries on
        with the next one.
        """
        now = now or datetime.datetime.now(datetime.timezone.utc)
        if lead is None:
            lead = datetime.timedelta(minutes=ROOM_REVEAL_LEAD_MINUTES)
        threshold = now - lead
        report = SweepReport()

        docs = (
            db.collection(TOURNAMENTS)
            .where(filter=firestore.FieldFilter("status", "==", TOURNAMENT_LIVE))
            .stream()
        )
        for doc in docs:
            data = doc.to_dict() or {}
            if not is_due(data.get("room"), threshold):
                continue
            report.tournaments += 1
            try:
                RoomRevealService._reveal(db, doc.id, threshold, report)
            except Exception:
                report.failed += 1
                logger.exception(f"Room reveal failed for tournament {doc.id}")

        logger.info(
            f"Room reveal sweep: {report.revealed}/{report.tournaments} revealed, "
            f"{report.notified} notified, {report.failed} failed"
        )
        return report

    @staticmethod
    def _reveal(
        db: Client,
        tournament_id: str,
        threshold: datetime.datetime,
        report: SweepReport,
    ) -> None:
        room = RoomRevealService._flip(db, tournament_id, threshold)
        if room is None:
            logger.info(f"Room of tournament {tournament_id} was already revealed")
            return
        report.revealed += 1
        logger.info(f"Revealed room for tournament {tournament_id}")

        registrations = RegistrationService.approved_registrations(db, tournament_id)
        for registration in registrations:
            user_id = registration.get("userId")
            if not user_id:
                logger.warning(
                    f"Skipping registration {registration['id']} in tournament "
                    f"{tournament_id}: no user to notify"
                )
                continue
            notification = NotificationService.build(
                user_id,
                "Room Details Available",
                f"Room ID: {room.get('id', '')} | Password: {room.get('password', '')}",
                MATCH_START,
                {
                    "tournamentId": tournament_id,
                    "roomId": room.get("id", ""),
                    "roomPassword": room.get("password", ""),
                },
            )
            if NotificationService.send(db, notification):
                report.notified += 1
            else:
                report.failed += 1

    @staticmethod
    def _flip(
        db: Client, tournament_id: str, threshold: datetime.datetime
    ) -> Optional[dict[str, Any]]:
        """Mark the room revealed unless another sweep got there first.

        Returns the revealed room, or None if this call did not flip it.
        """

        @firestore.transactional
        def _check_and_flip(transaction: Transaction) -> Optional[dict[str, Any]]:
            tournament = TournamentService.get_tournament(
                db, tournament_id, transaction=transaction
            )
            room = dict(tournament.get("room") or {})
            if tournament.get("status") != TOURNAMENT_LIVE:
                return None
            if not is_due(room, threshold):
                return None
            room["revealed"] = True
            transaction.update(
                db.collection(TOURNAMENTS).document(tournament_id),
                {"room": room, "updatedAt": firestore.SERVER_TIMESTAMP},
            )
            queue_audit_log(
                db,
                transaction,
                action="room_revealed",
                resource_type="tournament",
                resource_id=tournament_id,
                new_value={"roomId": room.get("id")},
            )
            return room

        return _check_and_flip(db.transaction())
