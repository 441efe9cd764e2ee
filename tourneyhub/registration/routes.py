"""Routes for the registration blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import g, jsonify

from tourneyhub.auth.decorators import auth_required
from tourneyhub.core.types import api_response
from tourneyhub.errors import ValidationError

from . import bp
from .forms import VerifyPaymentForm
from .services import RegistrationService


@bp.route("/<string:registration_id>/verify", methods=["POST"])
@auth_required
def verify_payment(registration_id: str) -> Any:
    """Approve or reject the payment attached to a registration."""
    form = VerifyPaymentForm()
    if not form.validate_on_submit():
        raise ValidationError(f"Invalid request: {form.errors}")

    new_status = RegistrationService.verify_payment(
        firestore.client(),
        registration_id,
        g.user["uid"],
        approved=form.decision.data == "approved",
        notes=form.notes.data or None,
    )
    return jsonify(
        api_response(
            f"Payment {new_status} successfully",
            {"registrationId": registration_id, "paymentStatus": new_status},
        )
    )
