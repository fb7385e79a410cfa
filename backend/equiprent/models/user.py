"""User model definition for the equipment-rental marketplace."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from equiprent.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .refresh_token import RefreshToken


class UserType(str, Enum):
    """Account type; also the single role carried in token claims."""

    ADMIN = "admin"
    OWNER = "owner"
    RENTER = "renter"


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Account identity for owners and renters.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed).
    password_hash : str
        Output of the configured password hasher. Always assigned pre-hashed:
        registration hashes at the start of the flow, long before the row
        exists.
    first_name, last_name : str | None
        Display names (``last_name`` doubles as the registration nickname).
    phone, bio, avatar : str | None
        Optional profile data; ``avatar`` is a URL path.
    user_type : UserType
        ``admin``, ``owner`` or ``renter``.
    is_verified : bool
        ``True`` once the email was proven through the OTP flow.
    is_active : bool
        Soft-disable switch.
    """

    __tablename__ = "users"

    # Columns
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(512), nullable=True)
    user_type: Mapped[UserType] = mapped_column(
        SAEnum(
            UserType,
            name="user_type",
            values_callable=lambda e: [m.value for m in e],
            native_enum=False,
            length=16,
        ),
        nullable=False,
        default=UserType.RENTER,
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Constraints & indexes
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        Index("ix_users_email", "email"),
    )

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :param key: Field name (``email``).
        :type key: str
        :param value: Email to normalize.
        :type value: str
        :returns: Normalized email (lowercased/trimmed).
        :rtype: str
        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("password_hash")
    def _require_hash(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value:
            raise ValueError("Password hash must be a non-empty string.")
        return value
