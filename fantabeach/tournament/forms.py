"""Forms for the tournament blueprint.

The admin API posts JSON; Flask-WTF reads it as form data. CSRF protection
is off because the API is not served to browsers as HTML forms.
"""

from flask_wtf import FlaskForm
from wtforms import FloatField, IntegerField, SelectField, StringField
from wtforms.validators import InputRequired, NumberRange, Optional

from .models import DayBucket, MatchStatus, Phase


class ApiForm(FlaskForm):
    """Base form for JSON payloads."""

    class Meta:
        csrf = False


class MatchForm(ApiForm):
    """Form for creating a match."""

    phase = SelectField(
        "Phase",
        choices=[(p.value, p.value) for p in Phase],
        validators=[InputRequired()],
    )
    day = SelectField(
        "Day",
        choices=[(d.value, d.value) for d in DayBucket],
        validators=[Optional()],
        default=DayBucket.FRIDAY.value,
    )
    round = IntegerField("Round", validators=[NumberRange(min=1)])
    slot = IntegerField("Slot", validators=[NumberRange(min=1)])
    pairAId = StringField("Pair A", validators=[Optional()])
    pairBId = StringField("Pair B", validators=[Optional()])
    scheduledAt = StringField("Scheduled At", validators=[Optional()])


class MatchUpdateForm(ApiForm):
    """Form for editing an open match. Every field is optional."""

    status = SelectField(
        "Status",
        choices=[(s.value, s.value) for s in MatchStatus],
        validators=[Optional()],
    )
    day = SelectField(
        "Day",
        choices=[(d.value, d.value) for d in DayBucket],
        validators=[Optional()],
    )
    pairAId = StringField("Pair A", validators=[Optional()])
    pairBId = StringField("Pair B", validators=[Optional()])
    scheduledAt = StringField("Scheduled At", validators=[Optional()])


class ScoringConfigForm(ApiForm):
    """Form for updating a tournament's scoring configuration."""

    basePointMultiplier = FloatField(
        "Base Point Multiplier", validators=[NumberRange(min=0)]
    )
    bonusWin20 = FloatField("2-0 Win Bonus", validators=[NumberRange(min=0)])
    bonusWin21 = FloatField("2-1 Win Bonus", validators=[NumberRange(min=0)])
