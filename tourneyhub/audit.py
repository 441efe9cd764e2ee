"""Audit log records for state-changing operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from tourneyhub.core.constants import AUDIT_LOGS, SYSTEM_DISPLAY_NAME, SYSTEM_USER_ID

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def build_audit_log(  # noqa: PLR0913
    action: str,
    resource_type: str,
    resource_id: str,
    user_id: str = SYSTEM_USER_ID,
    user_display_name: str = SYSTEM_DISPLAY_NAME,
    old_value: dict[str, Any] | None = None,
    new_value: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build an audit log document."""
    entry: dict[str, Any] = {
        "userId": user_id,
        "userDisplayName": user_display_name,
        "action": action,
        "resourceType": resource_type,
        "resourceId": resource_id,
        "createdAt": firestore.SERVER_TIMESTAMP,
    }
    if old_value is not None:
        entry["oldValue"] = old_value
    if new_value is not None:
        entry["newValue"] = new_value
    return entry


def queue_audit_log(db: Client, writer: Any, **entry: Any) -> None:
    """Queue an audit log write on a batch or transaction."""
    writer.set(db.collection(AUDIT_LOGS).document(), build_audit_log(**entry))
