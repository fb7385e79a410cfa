"""Application factory wiring Flask extensions, services and blueprints."""

from __future__ import annotations

from pathlib import Path

from flask import Flask

from equiprent.core.config import BaseConfig, get_config
from equiprent.core.logger import configure_logging, init_app as init_logging

SERVICES_KEY = "equiprent.services"


def build_services(app: Flask) -> dict[str, object]:
    """Compose the auth services from ``app.config`` and the bound extensions.

    Services are stateless apart from their collaborators, so one instance per
    application is shared by every request.

    Parameters
    ----------
    app: flask.Flask
        Application whose config and extensions are already initialized.

    Returns
    -------
    dict[str, object]
        Mapping ``name -> service`` also stored under
        ``app.extensions[SERVICES_KEY]``.
    """
    from equiprent.core import extensions
    from equiprent.infra.db.sqlalchemy_refresh_token_store import SQLAlchemyRefreshTokenStore
    from equiprent.infra.db.sqlalchemy_user_store import SQLAlchemyUserStore
    from equiprent.infra.jwt.pyjwt_token_provider import JWTTokenProvider
    from equiprent.infra.notifications.logging_notifier import LoggingNotifier
    from equiprent.infra.redis.redis_ephemeral_store import RedisEphemeralStore
    from equiprent.infra.security.werkzeug_hasher import WerkzeugPasswordHasher
    from equiprent.infra.storage.local_file_storage import LocalFileStorage
    from equiprent.services._shared.ports import InMemoryEphemeralStore
    from equiprent.services.auth.dto import AuthSettings
    from equiprent.services.auth.service import AuthService
    from equiprent.services.otp import OtpService
    from equiprent.services.registration.service import RegistrationService
    from equiprent.services.sessions import RefreshSessionService

    settings = AuthSettings.from_mapping(app.config)
    hasher = WerkzeugPasswordHasher(method=app.config.get("PASSWORD_HASH_METHOD", "scrypt"))
    tokens = JWTTokenProvider(settings)
    users = SQLAlchemyUserStore()
    notifier = LoggingNotifier()

    if extensions.redis_client is not None:
        ephemeral = RedisEphemeralStore(extensions.redis_client)
    else:
        app.logger.warning("REDIS_URL not set; using in-process ephemeral store")
        ephemeral = InMemoryEphemeralStore()

    upload_dir = Path(app.config.get("UPLOAD_DIR", "uploads"))
    if not upload_dir.is_absolute():
        upload_dir = Path(app.root_path).parent / upload_dir

    otp = OtpService(store=ephemeral, settings=settings)
    sessions = RefreshSessionService(
        store=SQLAlchemyRefreshTokenStore(), hasher=hasher, settings=settings
    )
    auth = AuthService(
        users=users,
        hasher=hasher,
        tokens=tokens,
        sessions=sessions,
        otp=otp,
        notifier=notifier,
        settings=settings,
    )
    registration = RegistrationService(
        users=users,
        hasher=hasher,
        tokens=tokens,
        otp=otp,
        files=LocalFileStorage(upload_dir),
        notifier=notifier,
        auth=auth,
        settings=settings,
    )

    services: dict[str, object] = {
        "settings": settings,
        "auth": auth,
        "registration": registration,
        "sessions": sessions,
    }
    app.extensions[SERVICES_KEY] = services
    return services


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application."""

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)
    # flask-jwt-extended verifies access tokens with the same key we sign them with
    app.config["JWT_SECRET_KEY"] = app.config["JWT_SECRET"]

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Proxy headers if running behind a reverse proxy (optional module)
    from equiprent.core import proxy

    proxy.init_app(app)

    from equiprent.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from equiprent.core import cors

    cors.init_app(app)

    build_services(app)

    from equiprent.api import init_app as init_api

    init_api(app)

    from equiprent.core import errors

    errors.init_app(app)

    from equiprent import cli as app_cli

    app_cli.init_app(app)

    return app
