# tests/conftest.py

from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from tasktrack import create_app
from tasktrack.config import Config
from tasktrack.extensions import db
from tasktrack.models.user import User
from tasktrack.security import issue_auth_token
from tasktrack.utils import utcnow

from .factories import make_org, make_user


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = "noreply@tasktrack.example.com"
    LOG_LEVEL = "WARNING"
    STRICT_STATUS_TRANSITIONS = False


@pytest.fixture()
def app(tmp_path):
    """
    App wired to a throwaway SQLite file and log dir.

    A file rather than :memory: so every app context sees the same data.
    """
    cfg = type("PerTestConfig", (TestingConfig,), {
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        "LOG_DIR": str(tmp_path / "logs"),
    })
    app = create_app(cfg)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def ctx(app):
    """
    Application context for service-level tests.

    NOTE: no HTTP requests inside it: Flask-Login caches the user on `g`,
    which lives as long as the app context does.
    """
    with app.app_context():
        yield


@pytest.fixture()
def seed(app):
    """
    Two organizations:
      acme:   admin, emp1, emp2 (active), newbie (pending)
      globex: admin_b, emp_b (active)
    Returns plain ids so tests can use them in any context.
    """
    with app.app_context():
        acme = make_org("Acme")
        globex = make_org("Globex")
        admin = make_user(acme, "Alice", role="admin")
        emp1 = make_user(acme, "Bob")
        emp2 = make_user(acme, "Carol")
        newbie = make_user(acme, "Dave", status="pending")
        admin_b = make_user(globex, "Erin", role="admin")
        emp_b = make_user(globex, "Frank")
        return SimpleNamespace(
            acme=acme.id,
            acme_slug=acme.slug,
            globex=globex.id,
            admin=admin.id,
            emp1=emp1.id,
            emp2=emp2.id,
            newbie=newbie.id,
            admin_b=admin_b.id,
            emp_b=emp_b.id,
        )


@pytest.fixture()
def headers(app):
    """headers(user_id) -> Authorization header for that user."""
    def _headers(user_id: int) -> dict:
        with app.app_context():
            token = issue_auth_token(db.session.get(User, user_id))
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture()
def yesterday():
    return utcnow() - timedelta(days=1)


@pytest.fixture()
def tomorrow():
    return utcnow() + timedelta(days=1)
