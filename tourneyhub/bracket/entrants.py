"""Turns approved registrations into bracket entrants."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from tourneyhub.core.constants import MIN_ENTRANTS
from tourneyhub.errors import PreconditionError
from tourneyhub.registration.services import RegistrationService

from .models import Entrant, EntrantKind

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


class EntrantResolver:
    """Resolves the entrants of a tournament from its approved registrations."""

    @staticmethod
    def from_registration(registration: dict[str, Any]) -> Optional[Entrant]:
        """Build the entrant for one registration.

        Team identity wins over solo identity. Returns None when the
        registration names neither a team nor a user.
        """
        team_id = registration.get("teamId")
        if team_id:
            return Entrant(
                entity_id=team_id,
                kind=EntrantKind.TEAM,
                display_name=registration.get("teamName") or team_id,
                registration_id=registration["id"],
                user_id=registration.get("userId"),
            )
        user_id = registration.get("userId")
        if not user_id:
            return None
        return Entrant(
            entity_id=user_id,
            kind=EntrantKind.SOLO,
            display_name=registration.get("playerGameId") or user_id,
            registration_id=registration["id"],
            user_id=user_id,
        )

    @staticmethod
    def approved_entrants(db: Client, tournament_id: str) -> list[Entrant]:
        """List distinct entrants of the tournament in registration-id order."""
        entrants: list[Entrant] = []
        seen: set[str] = set()
        registrations = RegistrationService.approved_registrations(db, tournament_id)
        for registration in registrations:
            entrant = EntrantResolver.from_registration(registration)
            if entrant is None:
                logger.warning(
                    f"Skipping registration {registration['id']} in tournament "
                    f"{tournament_id}: no team or user id"
                )
                continue
            if entrant.entity_id in seen:
                continue
            seen.add(entrant.entity_id)
            entrants.append(entrant)
        return entrants

    @staticmethod
    def resolve(db: Client, tournament_id: str) -> list[Entrant]:
        """Return the entrants for bracket generation.

        Raises PreconditionError when fewer than two entrants qualify.
        """
        entrants = EntrantResolver.approved_entrants(db, tournament_id)
        if len(entrants) < MIN_ENTRANTS:
            raise PreconditionError(
                f"At least {MIN_ENTRANTS} approved registrations are required "
                "to generate a bracket."
            )
        return entrants
