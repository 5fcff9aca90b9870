import math
import re

from wtforms import FloatField, IntegerField, StringField
from wtforms.widgets import PasswordInput

from .errors import InputError


class AmountField(FloatField):
    """FloatField that takes JSON numbers as well as typed amounts ("R$ 1500.00").

    A missing or null value leaves the field default in place.
    """

    def process_formdata(self, valuelist):
        if not valuelist or valuelist[0] is None or valuelist[0] == '':
            return
        value = valuelist[0]
        if isinstance(value, bool):
            self.data = None
            raise ValueError(self.gettext('Not a valid float value.'))
        if isinstance(value, str):
            # Remove currency symbols, spaces and thousands separators
            value = re.sub(r'[^\d.-]', '', value)
        super(AmountField, self).process_formdata([value])
        if self.data is not None and not math.isfinite(self.data):
            self.data = None
            raise ValueError(self.gettext('Not a valid float value.'))


class CountField(IntegerField):
    """IntegerField that also accepts whole JSON floats (60.0) and rejects 2.5."""

    def process_formdata(self, valuelist):
        if not valuelist or valuelist[0] is None or valuelist[0] == '':
            return
        value = valuelist[0]
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            self.data = None
            raise ValueError(self.gettext('Not a valid integer value.'))
        if isinstance(value, float):
            value = int(value)
        super(CountField, self).process_formdata([value])


class TextField(StringField):
    """StringField that strips surrounding whitespace and refuses non-strings."""

    strip = True

    def process_formdata(self, valuelist):
        if not valuelist or valuelist[0] is None:
            return
        value = valuelist[0]
        if not isinstance(value, str):
            self.data = None
            raise ValueError('Not a valid string value.')
        self.data = value.strip() if self.strip else value


class SecretField(TextField):
    widget = PasswordInput(hide_value=True)
    strip = False


def first_error(form):
    """Collapse WTForms errors into one human-readable message."""
    for field_name, errors in form.errors.items():
        if errors:
            field = getattr(form, field_name, None)
            label = field.label.text if field is not None else field_name
            return f"{label}: {errors[0]}"
    return "Invalid request"


def validated(form):
    """Run ``validate_on_submit`` and raise InputError on failure."""
    if not form.validate_on_submit():
        raise InputError(first_error(form))
    return form
