"""Forms for the registration blueprint."""

from flask_wtf import FlaskForm
from wtforms import SelectField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional


class VerifyPaymentForm(FlaskForm):
    """Form for approving or rejecting a registration payment."""

    class Meta:
        # Token-authenticated JSON API
        csrf = False

    decision = SelectField(
        "Decision",
        choices=[("approved", "Approve"), ("rejected", "Reject")],
        validators=[DataRequired()],
    )
    notes = TextAreaField("Notes", validators=[Optional(), Length(max=500)])
