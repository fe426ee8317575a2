# tasktrack/security.py
from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import current_app
from flask_login import current_user
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from .errors import Forbidden
from .extensions import db
from .models.user import User
from .utils import utcnow

@dataclass(frozen=True)
class Actor:
    """Authenticated caller as seen by the services."""
    id: int
    role: str
    organization_id: int
    status: str = "active"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(
            id=user.id,
            role=user.role,
            organization_id=user.organization_id,
            status=user.status,
        )

def current_actor() -> Actor:
    return Actor.from_user(current_user._get_current_object())

# -----------------
# Tokens
# -----------------

def _auth_ts() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key=current_app.config["SECRET_KEY"], salt="auth-token")

def _reset_ts() -> URLSafeTimedSerializer:
    salt = current_app.config.get("SECURITY_PASSWORD_SALT", "pwd-reset")
    return URLSafeTimedSerializer(secret_key=current_app.config["SECRET_KEY"], salt=salt)

def _issued_before_password_change(user: User, signed_at) -> bool:
    if user.password_changed_at is None:
        return False
    return signed_at.replace(tzinfo=None) < user.password_changed_at.replace(microsecond=0)

def issue_auth_token(user: User) -> str:
    return _auth_ts().dumps({"uid": user.id})

def load_user_from_token(token: str) -> Optional[User]:
    max_age = current_app.config.get("AUTH_TOKEN_MAX_AGE", 86400)
    try:
        data, signed_at = _auth_ts().loads(token, max_age=max_age, return_timestamp=True)
        uid = int(data.get("uid"))
    except (BadSignature, SignatureExpired, ValueError, TypeError, AttributeError):
        return None

    user = db.session.get(User, uid)
    # Tokens minted before the last password change are void
    if user is None or _issued_before_password_change(user, signed_at):
        return None
    return user

def issue_reset_token(user: User) -> str:
    return _reset_ts().dumps({"uid": user.id, "ts": utcnow().isoformat()})

def load_user_from_reset_token(token: str) -> Optional[User]:
    max_age = current_app.config.get("PASSWORD_RESET_MAX_AGE", 600)
    try:
        data, signed_at = _reset_ts().loads(token, max_age=max_age, return_timestamp=True)
        uid = int(data.get("uid"))
    except (BadSignature, SignatureExpired, ValueError, TypeError, AttributeError):
        return None

    user = db.session.get(User, uid)
    # a reset link stops working once the password has been changed
    if user is None or _issued_before_password_change(user, signed_at):
        return None
    return user

# -----------------
# View guards (stack below flask_login.login_required)
# -----------------

def active_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_user.status == "pending":
            raise Forbidden("Your account is pending approval. Please wait for an admin to approve your account.")
        if current_user.status == "rejected":
            raise Forbidden("Your account has been rejected. Please contact an administrator.")
        return view(*args, **kwargs)
    return wrapped

def roles_required(*roles):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if current_user.role not in roles:
                raise Forbidden("You do not have permission to perform this action.")
            return view(*args, **kwargs)
        return wrapped
    return decorator
