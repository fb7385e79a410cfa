"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Loads .env during development (no-op when the file is missing)
load_dotenv()


_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d|w)?\s*$", re.IGNORECASE)
_DURATION_UNITS: Final[dict[str, float]] = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_duration(value: str | int | float | timedelta) -> timedelta:
    """Convert an ``ms``-style duration into a :class:`~datetime.timedelta`.

    Parameters
    ----------
    value: str | int | float | timedelta
        ``"15m"``, ``"7d"``, ``"60s"``, ``"1h"``, ``"2w"``, ``"500ms"`` or a
        plain number of seconds. ``timedelta`` values pass through.

    Returns
    -------
    datetime.timedelta
        Parsed duration.

    Raises
    ------
    ValueError
        If the value cannot be parsed or is not positive.
    """
    if isinstance(value, timedelta):
        delta = value
    elif isinstance(value, int | float):
        delta = timedelta(seconds=value)
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            raise ValueError(f"Unrecognized duration: {value!r}")
        amount, unit = match.groups()
        delta = timedelta(seconds=float(amount) * _DURATION_UNITS[(unit or "s").lower()])
    if delta.total_seconds() <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return delta


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing. Defaults to a development-safe
        placeholder and should be overridden in production.
    JWT_SECRET: str
        Signing key for access tokens. Mirrored into ``JWT_SECRET_KEY`` so
        ``flask-jwt-extended`` can verify access tokens at the routing layer.
    JWT_REFRESH_SECRET: str
        Signing key for refresh tokens (distinct from ``JWT_SECRET``).
    JWT_RESET_SECRET: str
        Signing key for password-reset tokens.
    JWT_TEMP_SECRET: str
        Signing key for registration-completion tokens. Falls back to
        ``JWT_SECRET`` when unset.
    JWT_SECRET_EXP: str
        Access-token lifetime (``ms``-style duration, ``"15m"`` by default).
    JWT_REFRESH_SECRET_EXP: str
        Refresh-token lifetime (``"7d"`` by default).
    REFRESH_TOKEN_MAX_SESSIONS: int
        Maximum number of concurrent refresh sessions per user.
    REFRESH_TOKEN_COOKIE_NAME: str
        Cookie carrying the refresh token.
    FRONTEND_URL: str
        Base URL used to build password-reset links.
    REDIS_URL: str | None
        Redis connection string for the ephemeral store. When unset an
        in-process store is used (single worker only).
    UPLOAD_DIR: str
        Root directory for avatar uploads.
    PASSWORD_HASH_METHOD: str
        Werkzeug hashing method (cost parameter included).
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET = os.getenv("JWT_SECRET", "CHANGE_ME_JWT")
    JWT_SECRET_KEY = JWT_SECRET
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "CHANGE_ME_JWT_REFRESH")
    JWT_RESET_SECRET = os.getenv("JWT_RESET_SECRET", "CHANGE_ME_JWT_RESET")
    JWT_TEMP_SECRET = os.getenv("JWT_TEMP_SECRET") or JWT_SECRET
    JWT_SECRET_EXP = os.getenv("JWT_SECRET_EXP", "15m")
    JWT_REFRESH_SECRET_EXP = os.getenv("JWT_REFRESH_SECRET_EXP", "7d")
    JWT_TOKEN_LOCATION = ["headers"]
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

    # Sessions
    REFRESH_TOKEN_MAX_SESSIONS = int(os.getenv("REFRESH_TOKEN_MAX_SESSIONS", "5"))
    REFRESH_TOKEN_COOKIE_NAME = os.getenv("REFRESH_TOKEN_COOKIE_NAME", "refresh_token")
    REFRESH_COOKIE_SECURE = False

    # Collaborators
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
    REDIS_URL = os.getenv("REDIS_URL")
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # avatar upload limit

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, CORS & rate limiting
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    PROXYFIX_HOPS = int(os.getenv("PROXYFIX_HOPS", "1"))

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Never talks to Redis; the in-process ephemeral store is used instead.
    - Uses a cheap hashing cost so the suite stays fast.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PROPAGATE_EXCEPTIONS = True
    REDIS_URL = None
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    RATELIMIT_ENABLED = False
    USE_PROXYFIX = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled and marks the refresh cookie as
    ``Secure`` + ``SameSite=None`` for cross-site frontends.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REFRESH_COOKIE_SECURE = True


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
