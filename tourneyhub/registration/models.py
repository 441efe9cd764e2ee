"""Data models for tournament registrations."""

from __future__ import annotations

from typing import Any, TypedDict

from tourneyhub.core.types import FirestoreDocument


class PaymentProof(TypedDict, total=False):
    """Proof of payment uploaded by the player."""

    imageURL: str
    utr: str
    amount: float
    submittedAt: Any


class Registration(FirestoreDocument, total=False):
    """A registration document in Firestore."""

    tournamentId: str
    userId: str
    teamId: str
    teamName: str
    playerGameId: str
    paymentStatus: str
    paymentProof: PaymentProof
    verifiedBy: str
    verifiedAt: Any
    notes: str
