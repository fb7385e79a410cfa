# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import cast

import redis  # type: ignore[import-untyped]

from equiprent.services._shared.ports import EphemeralStore


@dataclass(slots=True)
class RedisEphemeralStore(EphemeralStore):
    """
    Redis-backed ephemeral key/value store.

    :param r: A Redis client (already connected).

    .. note::
       Connection errors propagate as :class:`redis.exceptions.RedisError`.
    """

    r: redis.Redis

    @staticmethod
    def _decode(raw: bytes | str | None) -> str | None:
        if raw is None:
            return None
        return raw.decode("utf-8") if isinstance(raw, bytes) else raw

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.r.set(key, value, ex=int(ttl_seconds))

    def get(self, key: str) -> str | None:
        return self._decode(self.r.get(key))

    def delete(self, key: str) -> None:
        self.r.delete(key)

    def delete_many(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if keys:
            self.r.delete(*keys)

    def exists(self, key: str) -> bool:
        return cast(int, self.r.exists(key)) == 1

    def ttl(self, key: str) -> int:
        return int(cast(int, self.r.ttl(key)))
