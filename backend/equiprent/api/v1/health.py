"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from equiprent.api.deps import json_response, timing
from equiprent.core import extensions
from equiprent.core.extensions import db

bp = Blueprint("health", __name__)


def _probe_redis() -> str:
    client = extensions.redis_client
    if client is None:
        return "disabled"
    try:
        client.ping()
    except RedisError:
        current_app.logger.exception("healthcheck.redis_error")
        return "fail"
    return "ok"


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and Redis health information.

    Always answers 200 while the process is alive; ``status`` degrades when a
    dependency probe fails.
    """

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"
    redis_status = _probe_redis()
    version = current_app.config.get("APP_VERSION", "dev")
    commit = current_app.config.get("APP_COMMIT", "unknown")
    overall = "ok" if db_status == "ok" and redis_status != "fail" else "degraded"
    payload = {
        "status": overall,
        "db": db_status,
        "redis": redis_status,
        "version": version,
        "commit": commit,
    }
    return json_response(payload)
