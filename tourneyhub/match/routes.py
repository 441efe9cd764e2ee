"""Routes for the match blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify

from tourneyhub.auth.decorators import auth_required
from tourneyhub.core.types import api_response
from tourneyhub.errors import ValidationError
from tourneyhub.tasks.events import MatchCompleted

from . import bp
from .forms import ReportResultForm
from .services import MatchService

MATCH_FIELDS = (
    "tournamentId",
    "round",
    "position",
    "team1Id",
    "team1Name",
    "team2Id",
    "team2Name",
    "status",
    "winnerId",
    "winnerName",
    "scores",
    "isBye",
)


def _serialize(match: dict[str, Any]) -> dict[str, Any]:
    data = {key: match[key] for key in MATCH_FIELDS if key in match}
    data["id"] = match["id"]
    return data


@bp.route("/<string:match_id>", methods=["GET"])
def view_match(match_id: str) -> Any:
    """Return a single match."""
    match = MatchService.get_match(firestore.client(), match_id)
    return jsonify(api_response("Match retrieved", _serialize(match)))


@bp.route("/<string:match_id>/result", methods=["POST"])
@auth_required
def report_result(match_id: str) -> Any:
    """Record a match result and queue the winner's advancement."""
    form = ReportResultForm()
    if not form.validate_on_submit():
        raise ValidationError(f"Invalid request: {form.errors}")

    match = MatchService.report_result(
        firestore.client(),
        match_id,
        g.user["uid"],
        form.winner_id.data,
        team1_score=form.team1_score.data,
        team2_score=form.team2_score.data,
    )
    current_app.extensions["match_events"].publish(
        MatchCompleted(match_id=match_id, tournament_id=match["tournamentId"])
    )
    return jsonify(api_response("Match result recorded", _serialize(match)))
