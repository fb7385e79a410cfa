"""Refresh-token session ledger model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from equiprent.core.extensions import db

from .base import PKMixin, ReprMixin, utcnow

if TYPE_CHECKING:
    from .user import User


class RefreshToken(PKMixin, ReprMixin, db.Model):
    """
    One live refresh session.

    Only a hash of the refresh JWT is stored. ``created_at`` is assigned by
    the application with microsecond precision so that "newest first"
    ordering (``created_at DESC, id DESC``) is stable within a second.
    """

    __tablename__ = "refresh_tokens"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    token_hash: Mapped[str] = mapped_column(String(254), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    user: Mapped[User] = relationship(back_populates="refresh_tokens")

    __table_args__ = (
        Index("ix_refresh_tokens_user_created", "user_id", "created_at"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )
