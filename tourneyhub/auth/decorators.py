"""Decorators for authenticating API callers."""

from functools import wraps

from firebase_admin import auth, firestore
from flask import current_app, g, request, session

from tourneyhub.core.constants import USERS
from tourneyhub.errors import AuthenticationError


def _bearer_token():
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def _resolve_caller_uid():
    """Return the uid of the caller from an ID token or the session."""
    token = _bearer_token()
    if token:
        try:
            decoded_token = auth.verify_id_token(token)
        except Exception as e:
            current_app.logger.warning(f"Rejected ID token: {e}")
            raise AuthenticationError("Invalid or expired ID token.") from e
        return decoded_token["uid"]
    return session.get("user_id")


def auth_required(f):
    """Reject the request unless the caller identity can be established.

    The caller's user document is loaded into ``g.user`` (with ``uid`` set even
    when the document does not exist yet).

    Usage:
    @auth_required
    def protected_view():
        ...
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        uid = _resolve_caller_uid()
        if not uid:
            raise AuthenticationError()

        db = firestore.client()
        user_doc = db.collection(USERS).document(uid).get()
        user = (user_doc.to_dict() or {}) if user_doc.exists else {}
        user["uid"] = uid
        g.user = user
        return f(*args, **kwargs)

    return decorated_function
