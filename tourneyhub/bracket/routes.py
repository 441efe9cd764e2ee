"""Routes for the bracket blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify

from tourneyhub.auth.decorators import auth_required
from tourneyhub.core.types import api_response

from . import bp
from .services import BracketService


@bp.route("/<string:tournament_id>/bracket", methods=["POST"])
@auth_required
def generate_bracket(tournament_id: str) -> Any:
    """Lock registrations and generate the tournament's bracket."""
    result = BracketService.generate_bracket(
        firestore.client(), tournament_id, g.user["uid"]
    )
    current_app.logger.info(
        f"User {g.user['uid']} generated bracket {result.bracketId}"
    )
    return jsonify(
        api_response("Bracket generated successfully", result.to_dict())
    ), 201


@bp.route("/<string:tournament_id>/bracket", methods=["GET"])
def view_bracket(tournament_id: str) -> Any:
    """Return the bracket with its matches grouped by round."""
    bracket = BracketService.get_bracket(firestore.client(), tournament_id)
    return jsonify(api_response("Bracket retrieved", bracket))
