"""ORM models; importing this package registers every table on ``db.metadata``."""

from equiprent.models.refresh_token import RefreshToken
from equiprent.models.user import User, UserType

__all__ = ["RefreshToken", "User", "UserType"]
