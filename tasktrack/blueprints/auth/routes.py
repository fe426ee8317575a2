# tasktrack/blueprints/auth/routes.py
from flask import current_app, abort
from flask_login import login_required, current_user

from ...errors import Forbidden, ValidationError
from ...extensions import db
from ...models.user import User
from ...security import (
    active_required,
    roles_required,
    current_actor,
    issue_auth_token,
    issue_reset_token,
    load_user_from_reset_token,
)
from ...services import EmployeeDirectory, OrganizationScope
from ...services.notifications import send_password_reset
from ...utils import utcnow
from ..utils import json_payload, ok, ok_list, bind_form, form_errors
from . import auth_bp
from .forms import (
    RegisterForm,
    LoginForm,
    ProfileForm,
    ForgotPasswordForm,
    ResetPasswordForm,
    ChangePasswordForm,
)

# -----------------
# Utilities
# -----------------

def _token_response(user: User, code=200):
    return ok(code, token=issue_auth_token(user), user=user.to_dict())


def _set_new_password(user: User, password: str):
    user.set_password(password)
    # second precision, the same as the token timestamps
    user.password_changed_at = utcnow().replace(microsecond=0)


# -----------------
# Register
# -----------------

@auth_bp.post("/register")
def register():
    form = bind_form(RegisterForm, json_payload())
    if not form.validate():
        raise form_errors(form)

    org = form.organization_obj
    user = User(
        first_name=form.firstName.data.strip(),
        last_name=form.lastName.data.strip(),
        email=form.email.data.strip().lower(),
        mobile=(form.mobile.data or "").strip() or None,
        role="employee",        # admins are created with create.py
        status="pending",       # waits for an admin's approval
        organization_id=org.id,
    )
    user.set_password(form.password.data)
    db.session.add(user)
    db.session.commit()

    current_app.logger.info("registration: user %s pending approval in org %s", user.id, org.id)
    return ok(
        201,
        message="Registration successful! Waiting for admin approval.",
        user={"id": user.id, "email": user.email, "status": user.status},
    )


# -----------------
# Login
# -----------------

@auth_bp.post("/login")
def login():
    form = bind_form(LoginForm, json_payload())
    if not form.validate():
        raise ValidationError("Please provide email and password!", fields=form.errors)

    email = form.email.data.strip().lower()
    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(form.password.data):
        current_app.logger.warning("failed login for %s", email)
        abort(401, description="Incorrect email or password.")

    if user.status == "pending":
        raise Forbidden("Your account is pending approval from an administrator.")
    if user.status == "rejected":
        raise Forbidden("Your account has been rejected. Please contact an administrator.")

    current_app.logger.info("login: user %s", user.id)
    return _token_response(user)


# -----------------
# Profile
# -----------------

@auth_bp.get("/me")
@login_required
@active_required
def me():
    return ok(user=current_user.to_dict())


@auth_bp.put("/me")
@login_required
@active_required
def update_profile():
    payload = json_payload()
    form = bind_form(ProfileForm, payload)
    if not form.validate():
        raise form_errors(form)

    user = current_user._get_current_object()
    for key, column in User.PROFILE_FIELDS.items():
        if key in payload:
            value = (getattr(form, key).data or "").strip()
            if not value and column in ("first_name", "last_name"):
                raise ValidationError("Names cannot be empty.", field=key)
            setattr(user, column, value or None)
    db.session.commit()
    return ok(user=user.to_dict())


@auth_bp.put("/change-password")
@login_required
@active_required
def change_password():
    form = bind_form(ChangePasswordForm, json_payload())
    if not form.validate():
        raise form_errors(form)

    user = current_user._get_current_object()
    if not user.check_password(form.currentPassword.data):
        abort(401, description="Your current password is wrong.")

    _set_new_password(user, form.password.data)
    db.session.commit()
    current_app.logger.info("password changed for user %s", user.id)
    return _token_response(user)


# -----------------
# Password reset
# -----------------

@auth_bp.post("/forgot-password")
def forgot_password():
    form = bind_form(ForgotPasswordForm, json_payload())
    if not form.validate():
        raise form_errors(form)

    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    # same answer whether or not the address is known
    if user is not None:
        send_password_reset(user, issue_reset_token(user))
    return ok(message="If that email is registered, a reset link has been sent.")


@auth_bp.post("/reset-password/<token>")
def reset_password(token):
    user = load_user_from_reset_token(token)
    if user is None:
        raise ValidationError("Token is invalid or has expired.")

    form = bind_form(ResetPasswordForm, json_payload())
    if not form.validate():
        raise form_errors(form)

    _set_new_password(user, form.password.data)
    db.session.commit()
    current_app.logger.info("password reset for user %s", user.id)
    return _token_response(user)


# -----------------
# Approvals queue
# -----------------

@auth_bp.get("/pending-approvals")
@login_required
@active_required
@roles_required("admin")
def pending_approvals():
    actor = current_actor()
    users = EmployeeDirectory().pending_approvals(OrganizationScope.of(actor))
    return ok_list("users", users)
