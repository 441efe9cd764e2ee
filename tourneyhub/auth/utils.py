"""Authorization helpers shared by the services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from tourneyhub.core.constants import ROLE_ADMIN, USERS
from tourneyhub.errors import AuthenticationError, AuthorizationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client


def get_caller(db: Client, caller_id: str | None) -> dict[str, Any]:
    """Fetch the caller's user document, raising if no identity was given."""
    if not caller_id:
        raise AuthenticationError()
    doc = cast("DocumentSnapshot", db.collection(USERS).document(caller_id).get())
    data = (doc.to_dict() or {}) if doc.exists else {}
    data["uid"] = caller_id
    return data


def is_admin(user: dict[str, Any]) -> bool:
    """Return True if the user document carries the admin role."""
    return user.get("role") == ROLE_ADMIN


def can_manage_tournament(user: dict[str, Any], tournament: dict[str, Any]) -> bool:
    """Organizers manage their own tournaments; admins manage all of them."""
    return user.get("uid") == tournament.get("organizerId") or is_admin(user)


def require_tournament_manager(
    caller: dict[str, Any], tournament: dict[str, Any], action: str
) -> None:
    """Raise AuthorizationError unless the caller can manage the tournament."""
    if not can_manage_tournament(caller, tournament):
        raise AuthorizationError(
            f"Only the tournament organizer or an admin can {action}."
        )


def display_name(user: dict[str, Any]) -> str:
    """Return the best available name for a user document."""
    return str(user.get("displayName") or user.get("name") or "Unknown")
