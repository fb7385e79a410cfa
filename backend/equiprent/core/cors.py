"""Cross-origin policy for ``/api/*``."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from equiprent.core.logger import REQUEST_ID_HEADER


def allowed_origins(app: Flask) -> list[str]:
    """``CORS_ORIGINS`` (comma separated) plus ``FRONTEND_URL``; ``["*"]`` stays as is."""
    origins = [o.strip() for o in app.config.get("CORS_ORIGINS", "").split(",") if o.strip()]
    if origins == ["*"]:
        return origins
    frontend = (app.config.get("FRONTEND_URL") or "").rstrip("/")
    if frontend and frontend not in origins:
        origins.append(frontend)
    return origins


def init_app(app: Flask) -> None:
    # The refresh cookie needs credentialed requests, which browsers refuse with "*".
    origins = allowed_origins(app)
    wildcard = origins == ["*"]
    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        expose_headers=[REQUEST_ID_HEADER, "Server-Timing"],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
