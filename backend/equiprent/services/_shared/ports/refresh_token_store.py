from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Persisted refresh session.

    :ivar id: Record identifier.
    :ivar user_id: Owner user id.
    :ivar token_hash: One-way hash of the refresh token (never the raw token).
    :ivar expires_at: Absolute expiration (aware UTC).
    :ivar created_at: Issuance time (aware UTC); drives newest-first ordering.
    :ivar ip: Client address at issuance.
    :ivar user_agent: Client user agent at issuance.
    """

    id: int
    user_id: int
    token_hash: str
    expires_at: datetime
    created_at: datetime
    ip: str | None = None
    user_agent: str | None = None


class RefreshTokenStore(Protocol):
    """
    Durable ledger of refresh sessions.

    Listing MUST return records newest first (``created_at`` then ``id``,
    both descending). Deletes are idempotent.
    """

    def add(
        self,
        *,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        created_at: datetime,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> RefreshTokenRecord:
        """Persist a new session and return it with its assigned id."""

    def list_for_user(self, user_id: int) -> Sequence[RefreshTokenRecord]:
        """All sessions of ``user_id``, newest first (expired ones included)."""

    def delete_by_id(self, record_id: int) -> bool:
        """Delete one record. :returns: True if it existed."""

    def delete_many(self, record_ids: Iterable[int]) -> int:
        """Delete the given records. :returns: Number deleted."""

    def delete_all_for_user(self, user_id: int) -> int:
        """Delete every session of ``user_id``. :returns: Number deleted."""

    def delete_expired(self, now: datetime) -> int:
        """Delete every record with ``expires_at <= now``. :returns: Number deleted."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh session ledger.

    .. note::
       Uses a threading lock so concurrent tests see atomic deletes.
    """

    def __init__(self) -> None:
        self._records: dict[int, RefreshTokenRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def add(
        self,
        *,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        created_at: datetime,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> RefreshTokenRecord:
        with self._lock:
            record = RefreshTokenRecord(
                id=next(self._ids),
                user_id=int(user_id),
                token_hash=token_hash,
                expires_at=expires_at,
                created_at=created_at,
                ip=ip,
                user_agent=user_agent,
            )
            self._records[record.id] = record
            return record

    def list_for_user(self, user_id: int) -> list[RefreshTokenRecord]:
        with self._lock:
            owned = [r for r in self._records.values() if r.user_id == int(user_id)]
        return sorted(owned, key=lambda r: (r.created_at, r.id), reverse=True)

    def delete_by_id(self, record_id: int) -> bool:
        with self._lock:
            return self._records.pop(int(record_id), None) is not None

    def delete_many(self, record_ids: Iterable[int]) -> int:
        with self._lock:
            return sum(1 for rid in record_ids if self._records.pop(int(rid), None) is not None)

    def delete_all_for_user(self, user_id: int) -> int:
        with self._lock:
            doomed = [rid for rid, r in self._records.items() if r.user_id == int(user_id)]
            for rid in doomed:
                del self._records[rid]
            return len(doomed)

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            doomed = [rid for rid, r in self._records.items() if r.expires_at <= now]
            for rid in doomed:
                del self._records[rid]
            return len(doomed)

    def __len__(self) -> int:
        return len(self._records)
