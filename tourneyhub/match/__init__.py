"""Match blueprint."""

from flask import Blueprint

bp = Blueprint("match", __name__, url_prefix="/matches")

from . import routes  # noqa: E402, F401
from .progression import ProgressionService  # noqa: E402
from .services import MatchService  # noqa: E402

__all__ = ["MatchService", "ProgressionService", "routes"]
