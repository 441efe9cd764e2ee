"""Service layer for registrations and payment verification."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from firebase_admin import firestore

from tourneyhub.audit import queue_audit_log
from tourneyhub.auth.utils import (
    display_name,
    get_caller,
    require_tournament_manager,
)
from tourneyhub.core.constants import (
    PAYMENT_APPROVED,
    PAYMENT_REJECTED,
    REGISTRATIONS,
)
from tourneyhub.errors import NotFoundError
from tourneyhub.notifications import (
    PAYMENT_APPROVED as PAYMENT_APPROVED_NOTIFICATION,
)
from tourneyhub.notifications import (
    PAYMENT_REJECTED as PAYMENT_REJECTED_NOTIFICATION,
)
from tourneyhub.notifications import NotificationService
from tourneyhub.tournament.services import TournamentService

from .models import Registration

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


class RegistrationService:
    """Handles data access for tournament registrations."""

    @staticmethod
    def approved_registrations(db: Client, tournament_id: str) -> list[Registration]:
        """Fetch the approved registrations of a tournament, ordered by id."""
        docs = (
            db.collection(REGISTRATIONS)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .where(
                filter=firestore.FieldFilter("paymentStatus", "==", PAYMENT_APPROVED)
            )
            .stream()
        )
        registrations = []
        for doc in docs:
            data = cast(Registration, doc.to_dict() or {})
            data["id"] = doc.id
            registrations.append(data)
        registrations.sort(key=lambda r: r["id"])
        return registrations

    @staticmethod
    def verify_payment(  # noqa: PLR0913
        db: Client,
        registration_id: str,
        caller_id: str | None,
        approved: bool,
        notes: str | None = None,
    ) -> str:
        """Approve or reject a registration's payment and notify the player.

        Returns the new payment status.
        """
        caller = get_caller(db, caller_id)
        reg_ref = db.collection(REGISTRATIONS).document(registration_id)
        reg_doc = cast("DocumentSnapshot", reg_ref.get())
        if not reg_doc.exists:
            raise NotFoundError("Registration not found.")
        registration = cast(Registration, reg_doc.to_dict() or {})

        tournament = TournamentService.get_tournament(db, registration["tournamentId"])
        require_tournament_manager(caller, tournament, "verify payments")

        new_status = PAYMENT_APPROVED if approved else PAYMENT_REJECTED
        update_data = {
            "paymentStatus": new_status,
            "verifiedBy": caller["uid"],
            "verifiedAt": firestore.SERVER_TIMESTAMP,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        if notes:
            update_data["notes"] = notes

        title = tournament.get("title", "the tournament")
        if approved:
            message = f'Your payment for "{title}" has been approved!'
        else:
            message = f'Your payment for "{title}" has been rejected. {notes or ""}'
        notification = NotificationService.build(
            registration["userId"],
            f"Payment {'Approved' if approved else 'Rejected'}",
            message.strip(),
            PAYMENT_APPROVED_NOTIFICATION
            if approved
            else PAYMENT_REJECTED_NOTIFICATION,
            {
                "tournamentId": registration["tournamentId"],
                "registrationId": registration_id,
            },
        )

        batch = db.batch()
        batch.update(reg_ref, update_data)
        NotificationService.queue(db, batch, notification)
        queue_audit_log(
            db,
            batch,
            action="payment_verified",
            resource_type="registration",
            resource_id=registration_id,
            user_id=caller["uid"],
            user_display_name=display_name(caller),
            old_value={"paymentStatus": registration.get("paymentStatus")},
            new_value={"paymentStatus": new_status, "notes": notes},
        )
        batch.commit()

        NotificationService.push(db, notification)
        logger.info(f"Payment {new_status} for registration {registration_id}")
        return new_status
