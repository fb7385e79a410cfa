"""Pytest fixtures for the auth backend.

Two layers are provided:

* **Service wiring** built from the ``InMemory*`` port doubles plus the real
  Werkzeug hasher and PyJWT provider. No Flask app, no database.
* **Application** fixtures: a Flask app on in-memory SQLite whose schema is
  created and dropped around every test that asks for ``db``.
"""

from __future__ import annotations

import os
from datetime import timedelta

import pytest
from equiprent.core.config import TestingConfig
from equiprent.core.extensions import db as _db  # Flask-SQLAlchemy instance
from equiprent.factory import SERVICES_KEY, create_app  # application factory under test
from equiprent.infra.jwt.pyjwt_token_provider import JWTTokenProvider
from equiprent.infra.security.werkzeug_hasher import WerkzeugPasswordHasher
from equiprent.services._shared.ports import (
    InMemoryEphemeralStore,
    InMemoryFileStorage,
    InMemoryNotifier,
    InMemoryRefreshTokenStore,
    InMemoryUserStore,
)
from equiprent.services.auth.dto import AuthSettings
from equiprent.services.auth.service import AuthService
from equiprent.services.otp import OtpService
from equiprent.services.registration.service import RegistrationService
from equiprent.services.sessions import RefreshSessionService

TEST_HASH_METHOD = "pbkdf2:sha256:1000"


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - In-memory SQLite, no Redis (in-process ephemeral store).
    - Distinct, long-enough secrets per token family.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"
    JWT_RESET_SECRET = "test-reset-secret-0123456789abcdef"
    JWT_TEMP_SECRET = "test-registration-secret-0123456789abcdef"
    FRONTEND_URL = "http://frontend.test"
    LOG_LEVEL = "WARNING"


# --------------------------------------------------------------------------- #
# Service wiring (no app)
# --------------------------------------------------------------------------- #


@pytest.fixture()
def settings() -> AuthSettings:
    """Auth settings mirroring :class:`TestConfig`."""
    return AuthSettings(
        access_secret=TestConfig.JWT_SECRET,
        refresh_secret=TestConfig.JWT_REFRESH_SECRET,
        reset_secret=TestConfig.JWT_RESET_SECRET,
        registration_secret=TestConfig.JWT_TEMP_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
        max_sessions=5,
        frontend_url=TestConfig.FRONTEND_URL,
    )


@pytest.fixture()
def hasher() -> WerkzeugPasswordHasher:
    """Real Werkzeug hasher with a cheap cost."""
    return WerkzeugPasswordHasher(method=TEST_HASH_METHOD)


@pytest.fixture()
def tokens(settings) -> JWTTokenProvider:
    return JWTTokenProvider(settings)


@pytest.fixture()
def users() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture()
def refresh_store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


@pytest.fixture()
def ephemeral() -> InMemoryEphemeralStore:
    return InMemoryEphemeralStore()


@pytest.fixture()
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest.fixture()
def files() -> InMemoryFileStorage:
    return InMemoryFileStorage()


@pytest.fixture()
def otp(ephemeral, settings) -> OtpService:
    return OtpService(store=ephemeral, settings=settings)


@pytest.fixture()
def sessions(refresh_store, hasher, settings) -> RefreshSessionService:
    return RefreshSessionService(store=refresh_store, hasher=hasher, settings=settings)


@pytest.fixture()
def auth(users, hasher, tokens, sessions, otp, notifier, settings) -> AuthService:
    """Build an AuthService wired to in-memory doubles."""
    return AuthService(
        users=users,
        hasher=hasher,
        tokens=tokens,
        sessions=sessions,
        otp=otp,
        notifier=notifier,
        settings=settings,
    )


@pytest.fixture()
def registration(users, hasher, tokens, otp, files, notifier, auth, settings) -> RegistrationService:
    return RegistrationService(
        users=users,
        hasher=hasher,
        tokens=tokens,
        otp=otp,
        files=files,
        notifier=notifier,
        auth=auth,
        settings=settings,
    )


# --------------------------------------------------------------------------- #
# Application
# --------------------------------------------------------------------------- #


@pytest.fixture(scope="session")
def app(tmp_path_factory):
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and uploads
        redirected to a temporary directory.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    upload_dir = tmp_path_factory.mktemp("uploads")

    class _Config(TestConfig):
        UPLOAD_DIR = str(upload_dir)

    app = create_app(_Config)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture()
def db(app):
    """Create every table before the test and drop them afterwards.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def session(db):
    """The Flask-scoped SQLAlchemy session (used by factories)."""
    return db.session


@pytest.fixture()
def app_services(app, monkeypatch):
    """The app's composed services with fresh ephemeral state and a recording notifier.

    Yields
    ------
    dict
        ``app.extensions`` services plus ``"notifier"`` (an
        :class:`InMemoryNotifier`) and ``"files"`` (an
        :class:`InMemoryFileStorage`).
    """
    services = dict(app.extensions[SERVICES_KEY])
    recorder = InMemoryNotifier()
    uploads = InMemoryFileStorage()
    monkeypatch.setattr(services["auth"].otp, "store", InMemoryEphemeralStore())
    monkeypatch.setattr(services["auth"], "notifier", recorder)
    monkeypatch.setattr(services["registration"], "notifier", recorder)
    monkeypatch.setattr(services["registration"], "files", uploads)
    services["notifier"] = recorder
    services["files"] = uploads
    return services


@pytest.fixture()
def client(app, db, app_services):
    """Return a Flask test client with a fresh schema and service state."""
    return app.test_client()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to the Flask-scoped session ---------------------------
@pytest.fixture()
def factories_session(session):
    """Wire Factory Boy's session helper to the test session."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield session
    SQLAlchemySession.set(None)
