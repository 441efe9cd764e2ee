"""Service layer for team-related operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from tourneyhub.core.constants import TEAMS

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction


class TeamService:
    """Service class for team-related operations."""

    @staticmethod
    def get_team(
        db: Client, team_id: str, transaction: Transaction | None = None
    ) -> dict[str, Any] | None:
        """Fetch a team document, or None if the id does not name a team."""
        doc = cast(
            "DocumentSnapshot",
            db.collection(TEAMS).document(team_id).get(transaction=transaction),
        )
        if not doc.exists:
            return None
        data = doc.to_dict() or {}
        data["id"] = team_id
        return data

    @staticmethod
    def member_ids(team: dict[str, Any]) -> list[str]:
        """Return the user ids of a team's current members, in stored order."""
        ids: list[str] = []
        for member in team.get("members") or []:
            if isinstance(member, dict):
                uid = member.get("userId")
            else:
                # Document references to users
                uid = getattr(member, "id", None)
            if uid and uid not in ids:
                ids.append(uid)
        if not ids:
            ids = list(dict.fromkeys(team.get("member_ids") or []))
        return ids
