"""Endpoints for external schedulers and change-event forwarders."""

from __future__ import annotations

import datetime
import hmac
from functools import wraps
from typing import Any

from firebase_admin import firestore
from flask import current_app, jsonify, request

from tourneyhub.core.types import api_response
from tourneyhub.errors import AuthenticationError, AuthorizationError
from tourneyhub.match.progression import ProgressionService
from tourneyhub.tournament.rooms import RoomRevealService

from . import bp


def task_token_required(f):
    """Reject the request unless it carries the configured task token."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get("TASK_TOKEN")
        if not expected:
            raise AuthorizationError("Task endpoints are disabled.")
        provided = request.headers.get("X-Task-Token", "")
        if not hmac.compare_digest(provided.encode(), expected.encode()):
            raise AuthenticationError("Invalid task token.")
        return f(*args, **kwargs)

    return decorated_function


@bp.route("/reveal-rooms", methods=["POST"])
@task_token_required
def reveal_rooms() -> Any:
    """Run one room reveal sweep."""
    lead = datetime.timedelta(minutes=current_app.config["ROOM_REVEAL_LEAD_MINUTES"])
    report = RoomRevealService.sweep(firestore.client(), lead=lead)
    return jsonify(api_response("Room reveal sweep finished", report.to_dict()))


@bp.route("/matches/<string:match_id>/completed", methods=["POST"])
@task_token_required
def match_completed(match_id: str) -> Any:
    """Advance or settle from a forwarded match-completion event."""
    outcome = ProgressionService.handle_match_completed(firestore.client(), match_id)
    current_app.logger.info(f"Match {match_id} handled: {outcome.outcome.value}")
    return jsonify(
        api_response(
            "Match completion handled",
            {
                "matchId": match_id,
                "outcome": outcome.outcome.value,
                "nextMatchId": outcome.next_match_id,
                "slot": outcome.slot,
            },
        )
    )
