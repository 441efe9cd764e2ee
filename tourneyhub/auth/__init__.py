"""Caller authentication and authorization."""

from .decorators import auth_required
from .utils import (
    can_manage_tournament,
    get_caller,
    is_admin,
    require_tournament_manager,
)

__all__ = [
    "auth_required",
    "can_manage_tournament",
    "get_caller",
    "is_admin",
    "require_tournament_manager",
]
