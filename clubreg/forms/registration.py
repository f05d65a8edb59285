"""Intake forms for registrations and donations."""

from __future__ import annotations

from typing import Any, Mapping, Type, TypeVar

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import BooleanField, EmailField, IntegerField, StringField, TelField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, Email, InputRequired, Length, Optional, Regexp, StopValidation

from clubreg.errors import ValidationError
from clubreg.models import ExperienceLevel, UNIFORM_SIZES, VOLUNTEER_CHOICES

FormT = TypeVar('FormT', bound=FlaskForm)

ACCEPT_MESSAGE = 'Must be accepted before payment'


class JsonBoolean:
    """Reject anything but a JSON boolean.

    BooleanField reads any string other than "false" as checked.
    """

    def __init__(self, message=None):
        self.message = message or "Must be true or false"

    def __call__(self, form, field):
        if field.raw_data and not isinstance(field.raw_data[0], bool):
            raise StopValidation(self.message)


class RegistrationForm(FlaskForm):
    """Player registration. Consents are recorded but not enforced here."""

    team_id = StringField("Team", validators=[DataRequired(), Length(max=36)])

    # Player
    player_first_name = StringField("Player First Name", validators=[DataRequired(), Length(max=255)])
    player_last_name = StringField("Player Last Name", validators=[DataRequired(), Length(max=255)])
    date_of_birth = StringField(
        "Date of Birth",
        validators=[DataRequired(), Regexp(r'^\d{4}-\d{2}-\d{2}$', message='Use YYYY-MM-DD')]
    )
    school_grade = StringField("School Grade", validators=[Optional(), Length(max=50)])
    primary_position = StringField("Primary Position", validators=[Optional(), Length(max=100)])
    experience_level = StringField(
        "Experience Level",
        validators=[Optional(), AnyOf([level.value for level in ExperienceLevel])]
    )
    medical_notes = TextAreaField("Medical Notes", validators=[Optional(), Length(max=2000)])
    schedule_requests = TextAreaField("Schedule Requests", validators=[Optional(), Length(max=2000)])
    jersey_size = StringField("Jersey Size", validators=[Optional(), AnyOf(UNIFORM_SIZES)])
    short_size = StringField("Short Size", validators=[Optional(), AnyOf(UNIFORM_SIZES)])

    # Guardian 1
    guardian1_first_name = StringField("Guardian First Name", validators=[DataRequired(), Length(max=255)])
    guardian1_last_name = StringField("Guardian Last Name", validators=[DataRequired(), Length(max=255)])
    guardian1_email = EmailField("Guardian Email", validators=[DataRequired(), Email(), Length(max=255)])
    guardian1_phone = TelField("Guardian Phone", validators=[DataRequired(), Length(max=30)])
    guardian1_volunteer = StringField("Guardian Volunteer", validators=[Optional(), AnyOf(VOLUNTEER_CHOICES)])

    # Guardian 2
    guardian2_first_name = StringField("Second Guardian First Name", validators=[Optional(), Length(max=255)])
    guardian2_last_name = StringField("Second Guardian Last Name", validators=[Optional(), Length(max=255)])
    guardian2_email = EmailField("Second Guardian Email", validators=[Optional(), Email(), Length(max=255)])
    guardian2_phone = TelField("Second Guardian Phone", validators=[Optional(), Length(max=30)])
    guardian2_volunteer = StringField(
        "Second Guardian Volunteer",
        validators=[Optional(), AnyOf(VOLUNTEER_CHOICES)]
    )

    # Emergency contact
    emergency_contact_first_name = StringField("Emergency Contact First Name", validators=[Optional(), Length(max=255)])
    emergency_contact_last_name = StringField("Emergency Contact Last Name", validators=[Optional(), Length(max=255)])
    emergency_contact_email = EmailField("Emergency Contact Email", validators=[Optional(), Email(), Length(max=255)])
    emergency_contact_phone = TelField("Emergency Contact Phone", validators=[Optional(), Length(max=30)])
    emergency_contact_relation = StringField("Relationship", validators=[Optional(), Length(max=100)])

    # Address
    street1 = StringField("Street", validators=[DataRequired(), Length(max=255)])
    street2 = StringField("Street Line 2", validators=[Optional(), Length(max=255)])
    city = StringField("City", validators=[DataRequired(), Length(max=120)])
    state = StringField("State", validators=[DataRequired(), Length(max=50)])
    zip = StringField("ZIP", validators=[DataRequired(), Length(max=20)])

    # Consents
    waiver_accepted = BooleanField("Injury/Liability Waiver", validators=[JsonBoolean()])
    photo_release_accepted = BooleanField("Photo Release", validators=[JsonBoolean()])
    age_verification_accepted = BooleanField("Birth Date Attestation", validators=[JsonBoolean()])
    code_of_conduct_accepted = BooleanField("Code of Conduct", validators=[JsonBoolean()])

    def registration_fields(self) -> dict[str, Any]:
        """Column values for a new Registration, blanks collapsed to None."""
        values: dict[str, Any] = {}
        for name, field in self._fields.items():
            if name in ('csrf_token', 'team_id'):
                continue
            value = field.data
            if isinstance(value, str):
                value = value.strip() or None
            values[name] = value

        values['guardian1_email'] = values['guardian1_email'].lower()
        values['guardian1_volunteer'] = values['guardian1_volunteer'] or 'No'
        values['guardian2_volunteer'] = values['guardian2_volunteer'] or 'No'
        if values['experience_level']:
            values['experience_level'] = ExperienceLevel(values['experience_level'])
        return values


class CheckoutRegistrationForm(RegistrationForm):
    """Registration headed for payment: payment-blocking consents are required."""

    waiver_accepted = BooleanField(
        "Injury/Liability Waiver",
        validators=[JsonBoolean(), DataRequired(message=ACCEPT_MESSAGE)]
    )
    photo_release_accepted = BooleanField(
        "Photo Release",
        validators=[JsonBoolean(), DataRequired(message=ACCEPT_MESSAGE)]
    )
    age_verification_accepted = BooleanField(
        "Birth Date Attestation",
        validators=[JsonBoolean(), DataRequired(message=ACCEPT_MESSAGE)]
    )


class DonationForm(FlaskForm):
    """Donation or reimbursement payment."""

    amount_cents = IntegerField("Amount (cents)", validators=[InputRequired()])
    type = StringField("Type", validators=[Optional(), Length(max=20)])
    donor_name = StringField("Name", validators=[Optional(), Length(max=255)])
    donor_email = EmailField("Email", validators=[Optional(), Email(), Length(max=255)])
    comment = TextAreaField("Comment", validators=[Optional(), Length(max=2000)])


def _to_formdata(payload: Mapping[str, Any]) -> MultiDict:
    """Flatten a JSON object into form data.

    Nulls and nested values are dropped; booleans are kept as-is so that
    BooleanField sees ``False`` rather than the string ``"False"``.
    """
    formdata = MultiDict()
    for key, value in payload.items():
        if value is None or isinstance(value, (dict, list)):
            continue
        if isinstance(value, bool):
            formdata.add(key, value)
        else:
            formdata.add(key, str(value).strip())
    return formdata


def load_form(form_class: Type[FormT], payload: Mapping[str, Any] | None) -> FormT:
    """Bind ``payload`` to ``form_class`` and validate, raising ValidationError."""
    if not isinstance(payload, Mapping):
        raise ValidationError('Expected a JSON object')

    form = form_class(formdata=_to_formdata(payload), meta={'csrf': False})
    if not form.validate():
        raise ValidationError('Missing or invalid fields', fields=form.errors)
    return form


__all__ = [
    'RegistrationForm',
    'CheckoutRegistrationForm',
    'DonationForm',
    'load_form',
]
