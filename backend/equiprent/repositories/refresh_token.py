"""Refresh-token ledger repository."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import delete, select

from equiprent.models.refresh_token import RefreshToken
from equiprent.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken` rows."""

    model = RefreshToken

    def list_for_user(self, user_id: int) -> list[RefreshToken]:
        """Return every session of ``user_id``, newest first.

        Ordering is ``created_at DESC, id DESC`` so ties within the same
        timestamp still resolve deterministically.
        """
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.created_at.desc(), RefreshToken.id.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def delete_by_id(self, row_id: int) -> bool:
        """Delete one row by id; ``False`` when no row matched (already gone)."""
        result = self.session.execute(
            delete(RefreshToken)
            .where(RefreshToken.id == int(row_id))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def delete_by_ids(self, ids: Iterable[int]) -> int:
        """Bulk-delete the given rows. :returns: Rows deleted."""
        ids = [int(i) for i in ids]
        if not ids:
            return 0
        result = self.session.execute(
            delete(RefreshToken)
            .where(RefreshToken.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    def delete_for_user(self, user_id: int) -> int:
        """Delete every session of ``user_id``. :returns: Rows deleted."""
        result = self.session.execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    def delete_expired(self, now: datetime) -> int:
        """Delete rows whose ``expires_at`` is at or before ``now``."""
        result = self.session.execute(
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)
