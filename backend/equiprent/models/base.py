"""Column mixins for the account models."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(UTC)


def _aware_timestamp(**kwargs):
    # Written by the app as aware UTC; server default covers raw SQL inserts.
    return mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), **kwargs
    )


class PKMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class TimestampMixin:
    """``created_at`` set on insert, ``updated_at`` bumped on every ORM update."""

    created_at: Mapped[datetime] = _aware_timestamp()
    updated_at: Mapped[datetime] = _aware_timestamp(onupdate=utcnow)


class ReprMixin:
    """``<User id=3>`` style repr that never prints column values such as hashes."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={getattr(self, 'id', None)}>"
