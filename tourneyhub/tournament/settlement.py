"""Tournament settlement: crowning the winner and crediting stats."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from tourneyhub.audit import queue_audit_log
from tourneyhub.bracket.entrants import EntrantResolver
from tourneyhub.bracket.models import EntrantKind
from tourneyhub.core.constants import TEAMS, TOURNAMENT_COMPLETED, TOURNAMENTS, USERS
from tourneyhub.errors import InvalidStateError
from tourneyhub.notifications import RESULT_POSTED, NotificationService
from tourneyhub.registration.services import RegistrationService
from tourneyhub.teams.services import TeamService

from .models import Stats, empty_stats
from .services import TournamentService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass
class _StatsEntry:
    collection: str
    doc_id: str
    stats: Stats
    exists: bool = True
    joined: bool = False
    dirty: bool = False


@dataclass
class StatsLedger:
    """Accumulates stat changes so each document is read once and written once.

    All reads must happen before the first write of a Firestore transaction,
    so documents are loaded up front with ``load`` and written with ``flush``.
    """

    db: Client
    entries: dict[str, _StatsEntry] = field(default_factory=dict)

    def load(self, transaction: Transaction, collection: str, doc_id: str) -> None:
        key = f"{collection}/{doc_id}"
        if key in self.entries:
            return
        ref = self.db.collection(collection).document(doc_id)
        doc = cast("DocumentSnapshot", ref.get(transaction=transaction))
        stats = empty_stats()
        if doc.exists:
            stats.update((doc.to_dict() or {}).get("stats") or {})
        self.entries[key] = _StatsEntry(collection, doc_id, stats, exists=doc.exists)

    def join(self, collection: str, doc_id: str) -> None:
        """Count one tournament joined, at most once per document."""
        entry = self.entries[f"{collection}/{doc_id}"]
        if not entry.joined:
            entry.joined = True
            entry.stats["tournamentsJoined"] += 1
            entry.dirty = True

    def win(self, collection: str, doc_id: str, earnings: float) -> None:
        entry = self.entries[f"{collection}/{doc_id}"]
        entry.stats["tournamentsWon"] += 1
        entry.stats["totalEarnings"] += earnings
        entry.dirty = True

    def flush(self, transaction: Transaction) -> int:
        """Queue the accumulated stats; return the number of documents written."""
        written = 0
        for entry in self.entries.values():
            if not entry.dirty:
                continue
            if not entry.exists:
                logger.warning(
                    f"{entry.collection}/{entry.doc_id} no longer exists; "
                    "skipping its stats"
                )
                continue
            transaction.set(
                self.db.collection(entry.collection).document(entry.doc_id),
                {"stats": dict(entry.stats), "updatedAt": firestore.SERVER_TIMESTAMP},
                merge=True,
            )
            written += 1
        return written


class SettlementService:
    """Settles a tournament once its final match is decided."""

    @staticmethod
    def settle(db: Client, tournament_id: str, match: dict[str, Any]) -> bool:
        """Crown the winner of the final match and credit everyone's stats.

        Returns True when this call settled the tournament and False when it
        had already been settled.
        """
        winner_id = match.get("winnerId")
        if not winner_id:
            raise InvalidStateError("The final match has no winner.")
        winner_name = match.get("winnerName") or winner_id

        registrations = RegistrationService.approved_registrations(db, tournament_id)
        entrants = [
            entrant
            for entrant in (
                EntrantResolver.from_registration(reg) for reg in registrations
            )
            if entrant is not None
        ]
        notifications: list[dict[str, Any]] = []

        @firestore.transactional
        def _settle(transaction: Transaction) -> bool:
            notifications.clear()
            tournament = TournamentService.get_tournament(
                db, tournament_id, transaction=transaction
            )
            if tournament.get("status") == TOURNAMENT_COMPLETED:
                return False

            ledger = StatsLedger(db)
            team_members: dict[str, list[str]] = {}

            def load_team(team_id: str) -> bool:
                if team_id not in team_members:
                    team = TeamService.get_team(db, team_id, transaction=transaction)
                    if team is None:
                        return False
                    team_members[team_id] = TeamService.member_ids(team)
                ledger.load(transaction, TEAMS, team_id)
                for uid in team_members[team_id]:
                    ledger.load(transaction, USERS, uid)
                return True

            # Reads
            winner_is_team = load_team(winner_id)
            if not winner_is_team:
                ledger.load(transaction, USERS, winner_id)
            joined: list[tuple[str, str]] = []
            for entrant in entrants:
                if entrant.kind is EntrantKind.TEAM:
                    if not load_team(entrant.entity_id):
                        logger.warning(
                            f"Team {entrant.entity_id} of tournament {tournament_id} "
                            "no longer exists; skipping its stats"
                        )
                        continue
                    joined.append((TEAMS, entrant.entity_id))
                    joined.extend(
                        (USERS, uid) for uid in team_members[entrant.entity_id]
                    )
                else:
                    ledger.load(transaction, USERS, entrant.entity_id)
                    joined.append((USERS, entrant.entity_id))

            # Writes
            earnings = TournamentService.winner_earnings(tournament)
            for collection, doc_id in joined:
                ledger.join(collection, doc_id)
            if winner_is_team:
                ledger.win(TEAMS, winner_id, earnings)
                members = team_members[winner_id]
                for uid in members:
                    ledger.win(USERS, uid, earnings / len(members))
            else:
                ledger.win(USERS, winner_id, earnings)
            ledger.flush(transaction)

            transaction.update(
                db.collection(TOURNAMENTS).document(tournament_id),
                {
                    "status": TOURNAMENT_COMPLETED,
                    "winnerId": winner_id,
                    "winnerName": winner_name,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )

            title = tournament.get("title", "the tournament")
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
                    "Tournament Results",
                    f'"{title}" has finished. {winner_name} won the tournament!',
                    RESULT_POSTED,
                    {"tournamentId": tournament_id, "winnerId": winner_id},
                )
                NotificationService.queue(db, transaction, notification)
                notifications.append(notification)

            queue_audit_log(
                db,
                transaction,
                action="tournament_settled",
                resource_type="tournament",
                resource_id=tournament_id,
                old_value={"status": tournament.get("status")},
                new_value={
                    "status": TOURNAMENT_COMPLETED,
                    "winnerId": winner_id,
                    "earnings": earnings,
                },
            )
            return True

        settled = _settle(db.transaction())
        if not settled:
            logger.info(f"Tournament {tournament_id} is already settled")
            return False

        logger.info(f"Tournament {tournament_id} settled; winner {winner_id}")
        pushed = NotificationService.push_all(db, notifications)
        logger.info(
            f"Sent {pushed}/{len(notifications)} result push messages "
            f"for tournament {tournament_id}"
        )
        return True
