"""Lookups and password-hash updates for :class:`~equiprent.models.User`."""

from __future__ import annotations

from sqlalchemy import ColumnElement, select, update

from equiprent.models.user import User
from equiprent.repositories.base import BaseRepository


def _email_matches(email: str) -> ColumnElement[bool]:
    # Stored emails are already lowercased by the model validator.
    return User.email == email.strip().lower()


class UserRepository(BaseRepository[User]):
    """Account rows. Password hashes arrive pre-computed by the service layer."""

    model = User

    def get_by_email(self, email: str) -> User | None:
        """Case-insensitive lookup; ``None`` when no account uses ``email``."""
        return self.session.scalars(select(User).where(_email_matches(email))).first()

    def exists_by_email(self, email: str) -> bool:
        return self.session.scalar(select(User.id).where(_email_matches(email))) is not None

    def set_password_hash(self, user_id: int, password_hash: str) -> bool:
        """Overwrite the stored hash; ``False`` when ``user_id`` is unknown."""
        result = self.session.execute(
            update(User).where(User.id == user_id).values(password_hash=password_hash)
        )
        return result.rowcount > 0
