from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol

from equiprent.services._shared.errors import AlreadyRegisteredError


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    Read-model of a user account as seen by the auth services.

    :ivar id: User id.
    :ivar email: Normalized email (unique).
    :ivar password_hash: Hasher output.
    :ivar user_type: ``admin``, ``owner`` or ``renter``.
    """

    id: int
    email: str
    password_hash: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    bio: str | None = None
    avatar: str | None = None
    user_type: str = "renter"
    is_verified: bool = False
    is_active: bool = True
    created_at: datetime | None = None

    @property
    def roles(self) -> tuple[str, ...]:
        """Roles carried in token claims (one per account type)."""
        return (self.user_type,)


@dataclass(frozen=True, slots=True)
class NewUser:
    """
    Input contract for account creation.

    :param email: Normalized email.
    :param password_hash: Already-hashed password.
    :param first_name: Given name.
    :param last_name: Nickname/family name.
    :param user_type: Account type value.
    :param is_verified: Whether the email was proven (OTP flow).
    """

    email: str
    password_hash: str
    first_name: str | None = None
    last_name: str | None = None
    user_type: str = "renter"
    phone: str | None = None
    bio: str | None = None
    avatar: str | None = None
    is_verified: bool = False


class UserStore(Protocol):
    """Durable user accounts keyed by id and by normalized email."""

    def find_by_email(self, email: str) -> UserRecord | None: ...

    def find_by_id(self, user_id: int) -> UserRecord | None: ...

    def create(self, data: NewUser) -> UserRecord:
        """
        Persist a new account.

        :raises AlreadyRegisteredError: If the email is taken.
        """

    def update_password(self, user_id: int, password_hash: str) -> bool:
        """Replace the stored hash. :returns: True if the user exists."""


class InMemoryUserStore(UserStore):
    """Dict-backed user store for unit tests."""

    def __init__(self) -> None:
        self._by_id: dict[int, UserRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def find_by_email(self, email: str) -> UserRecord | None:
        with self._lock:
            return next((u for u in self._by_id.values() if u.email == email), None)

    def find_by_id(self, user_id: int) -> UserRecord | None:
        with self._lock:
            return self._by_id.get(int(user_id))

    def create(self, data: NewUser) -> UserRecord:
        with self._lock:
            if any(u.email == data.email for u in self._by_id.values()):
                raise AlreadyRegisteredError()
            user = UserRecord(
                id=next(self._ids),
                email=data.email,
                password_hash=data.password_hash,
                first_name=data.first_name,
                last_name=data.last_name,
                phone=data.phone,
                bio=data.bio,
                avatar=data.avatar,
                user_type=data.user_type,
                is_verified=data.is_verified,
                created_at=datetime.now(UTC),
            )
            self._by_id[user.id] = user
            return user

    def update_password(self, user_id: int, password_hash: str) -> bool:
        with self._lock:
            user = self._by_id.get(int(user_id))
            if user is None:
                return False
            self._by_id[user.id] = replace(user, password_hash=password_hash)
            return True

    def remove(self, user_id: int) -> None:
        """Drop an account (simulates deletion between two requests)."""
        with self._lock:
            self._by_id.pop(int(user_id), None)
