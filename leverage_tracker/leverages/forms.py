from flask import current_app
from flask_wtf import FlaskForm
from wtforms import SubmitField
from wtforms.validators import DataRequired, Length, ValidationError

from ..fields import AmountField, CountField, TextField
from ..progression import Progression


def _default_odd():
    return current_app.config["DEFAULT_ODD"]


def _default_max_steps():
    return current_app.config["DEFAULT_MAX_STEPS"]


class LeverageForm(FlaskForm):
    """New leverage. JSON keys follow the dashboard's camelCase names."""
    name = TextField("Name", validators=[DataRequired(), Length(max=120)])
    initial_value = AmountField("Initial value", name="initialValue", validators=[DataRequired()])
    odd = AmountField("Odd", default=_default_odd)
    max_steps = CountField("Max bets", name="maxBets", default=_default_max_steps)
    submit = SubmitField("Start leverage")

    def validate_initial_value(self, field):
        if field.data <= 0:
            raise ValidationError("Initial value must be greater than zero")

    def validate_odd(self, field):
        if field.data is None or field.data <= 1:
            raise ValidationError("Odd must be greater than 1")

    def validate_max_steps(self, field):
        if field.data is None or field.data < 1:
            raise ValidationError("Max bets must be at least 1")
        initial, odd = self.initial_value.data, self.odd.data
        if initial is None or odd is None or initial <= 0 or odd <= 1:
            return
        target = Progression(name=self.name.data or "", initial_value=initial, odd=odd, max_steps=field.data)
        if not target.is_trackable():
            raise ValidationError("Odd and max bets give a target value too large to track")


class StepForm(FlaskForm):
    current_step = CountField("Current day", name="currentDay", validators=[DataRequired()])

    def validate_current_step(self, field):
        if field.data < 1:
            raise ValidationError("Invalid current day")


class ActionForm(FlaskForm):
    """Body-less dashboard buttons (advance, close, delete...); CSRF only."""
    submit = SubmitField("Go")
