"""Bracket blueprint."""

from flask import Blueprint

bp = Blueprint("bracket", __name__, url_prefix="/tournaments")

from . import routes  # noqa: E402, F401
from .services import BracketService  # noqa: E402

__all__ = ["BracketService", "routes"]
