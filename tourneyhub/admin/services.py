"""Service layer for admin-related operations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import auth, firestore

from tourneyhub.audit import queue_audit_log
from tourneyhub.auth.utils import display_name, get_caller, is_admin
from tourneyhub.core.constants import ROLES, USERS
from tourneyhub.errors import AuthorizationError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


class AdminService:
    """Service class for admin-related operations."""

    @staticmethod
    def set_role(
        db: Client, caller_id: str | None, uid: str, role: str
    ) -> dict[str, Any]:
        """Grant a role to a user, both as a custom claim and on the user document."""
        caller = get_caller(db, caller_id)
        if not is_admin(caller):
            raise AuthorizationError("Only admins can change user roles.")
        if role not in ROLES:
            raise ValidationError(f"Invalid role. Must be one of: {', '.join(ROLES)}.")

        user_ref = db.collection(USERS).document(uid)
        user_doc = cast("DocumentSnapshot", user_ref.get())
        if not user_doc.exists:
            raise NotFoundError("User not found.")
        old_role = (user_doc.to_dict() or {}).get("role")

        auth.set_custom_user_claims(uid, {"role": role})

        batch = db.batch()
        batch.update(user_ref, {"role": role, "updatedAt": firestore.SERVER_TIMESTAMP})
        queue_audit_log(
            db,
            batch,
            action="role_updated",
            resource_type="user",
            resource_id=uid,
            user_id=caller["uid"],
            user_display_name=display_name(caller),
            old_value={"role": old_role},
            new_value={"role": role},
        )
        batch.commit()

        logger.info(f"Admin {caller['uid']} set role of {uid} to {role}")
        return {"uid": uid, "role": role}
