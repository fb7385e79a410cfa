"""SQLAlchemy repositories for the ``users`` and ``refresh_tokens`` tables."""

from __future__ import annotations

from equiprent.repositories.base import BaseRepository
from equiprent.repositories.refresh_token import RefreshTokenRepository
from equiprent.repositories.user import UserRepository

__all__ = ["BaseRepository", "RefreshTokenRepository", "UserRepository"]
