from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Protocol


class EphemeralStore(Protocol):
    """
    Key/value store with per-key expiry (OTP codes, pending registrations...).

    Every write carries a TTL. There are no cross-key transactions; callers
    must tolerate a key expiring between two reads.
    """

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``, replacing any previous value."""

    def get(self, key: str) -> str | None:
        """Return the value, or ``None`` when missing or expired."""

    def delete(self, key: str) -> None:
        """Remove ``key`` (no-op when missing)."""

    def delete_many(self, keys: Iterable[str]) -> None:
        """Remove every key in ``keys``."""

    def exists(self, key: str) -> bool:
        """Return ``True`` if ``key`` holds a live value."""

    def ttl(self, key: str) -> int:
        """Remaining lifetime in whole seconds; ``-2`` when the key is missing."""


class InMemoryEphemeralStore(EphemeralStore):
    """
    Process-local ephemeral store.

    .. note::
       Uses a threading lock to guard its dict. Expiry is evaluated lazily
       against the wall clock, so it honors ``freezegun`` in tests. Not shared
       between workers: use the Redis adapter when running more than one.
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, datetime]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def _live(self, key: str) -> tuple[str, datetime] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry[1] <= self._now():
            del self._data[key]
            return None
        return entry

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        with self._lock:
            self._data[key] = (value, self._now() + timedelta(seconds=ttl_seconds))

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def delete_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._data.pop(key, None)

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live(key) is not None

    def ttl(self, key: str) -> int:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return -2
            return int((entry[1] - self._now()).total_seconds())
