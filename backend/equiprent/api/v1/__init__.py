"""Version 1 of the HTTP API: health probe and account/auth routes."""

from __future__ import annotations

from flask import Blueprint

from .auth import bp as auth_bp
from .health import bp as health_bp

API_VERSION = "v1"

# (blueprint, mount point below /api/v1)
REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),
    (auth_bp, "/auth"),
]
