"""Background work: event delivery, periodic sweeps and their task endpoints."""

from flask import Blueprint

bp = Blueprint("tasks", __name__, url_prefix="/tasks")

from . import routes  # noqa: E402, F401
from .events import MatchCompleted, MatchEventQueue  # noqa: E402
from .scheduler import PeriodicTask  # noqa: E402

__all__ = ["MatchCompleted", "MatchEventQueue", "PeriodicTask", "routes"]
