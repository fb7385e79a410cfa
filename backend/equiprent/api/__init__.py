"""Mount the versioned API blueprints on the application."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def join_prefix(*parts: str) -> str:
    """Join URL segments into ``/a/b`` form, skipping empty ones."""
    segments = [p.strip("/") for p in parts if p and p.strip("/")]
    return "/" + "/".join(segments)


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """
    Register each ``(blueprint, relative_prefix)`` under ``base_prefix``.

    An empty relative prefix mounts the blueprint at ``base_prefix`` itself.
    """
    for bp, rel_prefix in entries:
        app.register_blueprint(bp, url_prefix=join_prefix(base_prefix, rel_prefix))


def init_app(app: Flask) -> None:
    from equiprent.api.v1 import API_VERSION, REGISTRY

    base = join_prefix(app.config.get("API_BASE_PREFIX", "/api"), API_VERSION)
    register_blueprint_group(app, base_prefix=base, entries=REGISTRY)


__all__ = ["init_app", "join_prefix", "register_blueprint_group"]
