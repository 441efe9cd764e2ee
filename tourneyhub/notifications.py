"""Notification records and push delivery."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore, messaging

from tourneyhub.core.constants import NOTIFICATIONS, USERS

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

# Notification types understood by the web client
MATCH_START = "match_start"
RESULT_POSTED = "result_posted"
PAYMENT_APPROVED = "payment_approved"
PAYMENT_REJECTED = "payment_rejected"


class NotificationService:
    """Writes notification documents and mirrors them as push messages."""

    @staticmethod
    def build(
        user_id: str,
        title: str,
        message: str,
        notification_type: str,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Build a notification document."""
        return {
            "userId": user_id,
            "title": title,
            "message": message,
            "type": notification_type,
            "data": data or {},
            "read": False,
            "createdAt": firestore.SERVER_TIMESTAMP,
        }

    @staticmethod
    def queue(db: Client, writer: Any, notification: dict[str, Any]) -> None:
        """Queue a notification write on a batch or transaction."""
        writer.set(db.collection(NOTIFICATIONS).document(), notification)

    @staticmethod
    def push(db: Client, notification: dict[str, Any]) -> bool:
        """Send a push message for a notification if the user has a device token.

        Returns True when a message was handed to FCM. Delivery failures are
        logged and reported as False; they never propagate.
        """
        user_id = notification["userId"]
        try:
            user_doc = cast(
                "DocumentSnapshot", db.collection(USERS).document(user_id).get()
            )
            if not user_doc.exists:
                return False
            token = (user_doc.to_dict() or {}).get("fcmToken")
            if not token:
                return False
            data = {k: str(v) for k, v in notification.get("data", {}).items()}
            data["type"] = notification["type"]
            messaging.send(
                messaging.Message(
                    token=token,
                    notification=messaging.Notification(
                        title=notification["title"], body=notification["message"]
                    ),
                    data=data,
                )
            )
            return True
        except Exception as e:
            logger.error(f"Push notification to user {user_id} failed: {e}")
            return False

    @staticmethod
    def send(db: Client, notification: dict[str, Any]) -> bool:
        """Store a notification and push it, isolating failures per recipient."""
        try:
            db.collection(NOTIFICATIONS).add(notification)
        except Exception as e:
            logger.error(
                f"Storing notification for user {notification['userId']} failed: {e}"
            )
            return False
        NotificationService.push(db, notification)
        return True

    @staticmethod
    def push_all(db: Client, notifications: list[dict[str, Any]]) -> int:
        """Push already-stored notifications; return how many were handed to FCM."""
        return sum(1 for n in notifications if NotificationService.push(db, n))
