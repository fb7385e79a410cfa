"""Equipment-rental backend: accounts, registration and refresh sessions."""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
