"""Core data types for the tourneyhub application."""

from typing import Any, Dict, Optional, TypedDict  # noqa: UP035


class _FirestoreDocumentBase(TypedDict):
    id: str
    createdAt: Any


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure."""

    updatedAt: Any


class APIResponse(TypedDict):
    """Generic API response structure."""

    success: bool
    message: str
    data: Optional[Dict[str, Any]]  # noqa: UP006


def api_response(
    message: str,
    data: Optional[Dict[str, Any]] = None,  # noqa: UP006
) -> APIResponse:
    """Build a successful API response payload."""
    return APIResponse(success=True, message=message, data=data)
