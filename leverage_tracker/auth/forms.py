from flask import current_app
from flask_wtf import FlaskForm
from wtforms import SubmitField
from wtforms.validators import DataRequired, Length, ValidationError

from ..fields import AmountField, CountField, SecretField, TextField


class LoginForm(FlaskForm):
    name = TextField("Name", validators=[DataRequired()])
    password = SecretField("Password", validators=[DataRequired()])
    submit = SubmitField("Log in")


class RegisterForm(FlaskForm):
    name = TextField("Name", validators=[DataRequired(), Length(max=80)])
    password = SecretField("Password", validators=[DataRequired()])
    age = CountField("Age", validators=[DataRequired()])
    bankroll = AmountField("Initial bankroll", validators=[DataRequired()])
    submit = SubmitField("Create account")

    def validate_password(self, field):
        minimum = current_app.config["MIN_PASSWORD_LENGTH"]
        if len(field.data) < minimum:
            raise ValidationError(f"Password must be at least {minimum} characters")

    def validate_age(self, field):
        minimum = current_app.config["MIN_AGE"]
        if field.data < minimum:
            raise ValidationError(f"Minimum age is {minimum}")

    def validate_bankroll(self, field):
        if field.data <= 0:
            raise ValidationError("Initial bankroll must be greater than zero")
