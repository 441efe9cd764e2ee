"""Routes for the admin blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import g, jsonify

from tourneyhub.auth.decorators import auth_required
from tourneyhub.core.types import api_response
from tourneyhub.errors import ValidationError

from . import bp
from .forms import SetRoleForm
from .services import AdminService


@bp.route("/users/<string:uid>/role", methods=["POST"])
@auth_required
def set_role(uid: str) -> Any:
    """Change a user's role."""
    form = SetRoleForm()
    if not form.validate_on_submit():
        raise ValidationError(f"Invalid request: {form.errors}")

    result = AdminService.set_role(
        firestore.client(), g.user["uid"], uid, form.role.data
    )
    return jsonify(api_response(f"Role updated to {form.role.data}", result))
