# tasktrack/blueprints/auth/forms.py
from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField
from wtforms.validators import (
    DataRequired,
    Email,
    Length,
    EqualTo,
    Optional as Opt,
    Regexp,
    ValidationError as FieldError,
)

from ...models.user import User
from ...models.organization import Organization


# ---------------------
# Validators / Helpers
# ---------------------

PASSWORD_VALIDATORS = [
    DataRequired(),
    Length(min=8, message="Password must be at least 8 characters long."),
]

NAME_VALIDATORS = [DataRequired(), Length(min=2, max=30)]

MOBILE_VALIDATORS = [Opt(), Regexp(r"^\d{10,15}$", message="Not a valid phone number.")]


def _email_exists(email: str) -> bool:
    return User.query.filter(User.email == email.lower().strip()).first() is not None


# -------------
# Auth Forms
# -------------

class RegisterForm(FlaskForm):
    firstName = StringField("First name", validators=NAME_VALIDATORS)
    lastName = StringField("Last name", validators=NAME_VALIDATORS)
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])
    mobile = StringField("Mobile", validators=MOBILE_VALIDATORS)
    organization = StringField("Organization", validators=[DataRequired(), Length(max=40)])
    password = PasswordField("Password", validators=PASSWORD_VALIDATORS)

    def validate_email(self, field):
        if _email_exists(field.data):
            raise FieldError("Email is already registered.")

    def validate_organization(self, field):
        org = Organization.query.filter_by(slug=field.data.strip()).first()
        if org is None:
            raise FieldError("Unknown organization.")
        self.organization_obj = org


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[DataRequired()])


class ProfileForm(FlaskForm):
    firstName = StringField("First name", validators=[Opt(), Length(min=2, max=30)])
    lastName = StringField("Last name", validators=[Opt(), Length(min=2, max=30)])
    mobile = StringField("Mobile", validators=MOBILE_VALIDATORS)
    photo = StringField("Photo", validators=[Opt(), Length(max=255)])


class ForgotPasswordForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])


class ResetPasswordForm(FlaskForm):
    password = PasswordField("New password", validators=PASSWORD_VALIDATORS)
    passwordConfirm = PasswordField(
        "Confirm new password",
        validators=[DataRequired(), EqualTo("password", message="Passwords do not match.")],
    )


class ChangePasswordForm(ResetPasswordForm):
    currentPassword = PasswordField("Current password", validators=[DataRequired()])
