"""Forms for the match blueprint."""

from flask_wtf import FlaskForm
from wtforms import IntegerField, StringField
from wtforms.validators import DataRequired, NumberRange, Optional


class ReportResultForm(FlaskForm):
    """Form for reporting the winner of a match."""

    class Meta:
        csrf = False

    winner_id = StringField("Winner", validators=[DataRequired()])
    team1_score = IntegerField(
        "Team 1 Score", validators=[Optional(), NumberRange(min=0)]
    )
    team2_score = IntegerField(
        "Team 2 Score", validators=[Optional(), NumberRange(min=0)]
    )

    def validate(self, extra_validators=None):
        """Validate the form; scores are reported in pairs."""
        if not super().validate(extra_validators=extra_validators):
            return False

        if (self.team1_score.data is None) != (self.team2_score.data is None):
            self.team2_score.errors.append("Report both scores or neither.")
            return False
        return True
