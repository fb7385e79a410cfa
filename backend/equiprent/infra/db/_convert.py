"""Row → record converters shared by the SQLAlchemy store adapters."""

from __future__ import annotations

from datetime import UTC, datetime

from equiprent.models import RefreshToken, User
from equiprent.services._shared.ports import RefreshTokenRecord, UserRecord


def as_utc(value: datetime | None) -> datetime | None:
    """Label naive datetimes (SQLite round-trips) as UTC; convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def user_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        first_name=row.first_name,
        last_name=row.last_name,
        phone=row.phone,
        bio=row.bio,
        avatar=row.avatar,
        user_type=row.user_type.value,
        is_verified=row.is_verified,
        is_active=row.is_active,
        created_at=as_utc(row.created_at),
    )


def refresh_token_record(row: RefreshToken) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        id=row.id,
        user_id=row.user_id,
        token_hash=row.token_hash,
        expires_at=as_utc(row.expires_at),
        created_at=as_utc(row.created_at),
        ip=row.ip,
        user_agent=row.user_agent,
    )
