"""Forms for the admin blueprint."""

from flask_wtf import FlaskForm
from wtforms import SelectField
from wtforms.validators import DataRequired

from tourneyhub.core.constants import ROLES


class SetRoleForm(FlaskForm):
    """Form for changing a user's role."""

    class Meta:
        csrf = False

    role = SelectField(
        "Role",
        choices=[(role, role.title()) for role in ROLES],
        validators=[DataRequired()],
    )
