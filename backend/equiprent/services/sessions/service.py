"""
RefreshSessionService
=====================

Ledger of refresh sessions. Only salted hashes of refresh tokens are stored,
so a presented token is matched by comparing it against each of the user's
stored hashes.
"""

from __future__ import annotations

from datetime import datetime

from equiprent.core.logger import log_event
from equiprent.services._shared.base import BaseService
from equiprent.services._shared.dto import RequestMeta
from equiprent.services._shared.ports import (
    PasswordHasher,
    RefreshTokenRecord,
    RefreshTokenStore,
)
from equiprent.services.auth.dto import AuthSettings
from equiprent.services.sessions.dto import SessionOut


class RefreshSessionService(BaseService):
    """
    Create, match and evict refresh sessions.

    :param store: Durable ledger.
    :param hasher: Hasher used for token-at-rest hashing.
    :param settings: Refresh lifetime and per-user session cap.
    """

    def __init__(
        self,
        *,
        store: RefreshTokenStore,
        hasher: PasswordHasher,
        settings: AuthSettings,
    ) -> None:
        super().__init__()
        self.store = store
        self.hasher = hasher
        self.settings = settings

    def create(
        self,
        user_id: int,
        raw_token: str,
        *,
        expires_at: datetime | None = None,
        meta: RequestMeta | None = None,
    ) -> RefreshTokenRecord:
        """
        Persist a new session for ``raw_token`` (hashed before storage).

        :param user_id: Owner.
        :param raw_token: Encoded refresh JWT as handed to the client.
        :param expires_at: Defaults to now + refresh TTL.
        :param meta: Client IP / user agent for auditing.
        """
        now = self.now_utc()
        meta = meta or RequestMeta()
        return self.store.add(
            user_id=int(user_id),
            token_hash=self.hasher.hash(raw_token),
            expires_at=expires_at or now + self.settings.refresh_ttl,
            created_at=now,
            ip=meta.ip,
            user_agent=meta.user_agent,
        )

    def find_matching_token(self, user_id: int, raw_token: str) -> RefreshTokenRecord | None:
        """
        Return the session whose hash matches ``raw_token`` (expired or not).

        Costs one hash comparison per stored session in the worst case.
        """
        for record in self.store.list_for_user(int(user_id)):
            if self.hasher.compare(raw_token, record.token_hash):
                return record
        return None

    def delete_by_id(self, record_id: int) -> bool:
        return self.store.delete_by_id(record_id)

    def delete_all_by_user(self, user_id: int) -> int:
        return self.store.delete_all_for_user(int(user_id))

    def enforce_max_sessions(self, user_id: int, max_sessions: int | None = None) -> int:
        """
        Keep only the ``max_sessions`` newest sessions of ``user_id``.

        :returns: Number of evicted sessions.
        """
        limit = self.settings.max_sessions if max_sessions is None else int(max_sessions)
        records = self.store.list_for_user(int(user_id))
        surplus = records[max(limit, 0):]
        if not surplus:
            return 0
        evicted = self.store.delete_many(r.id for r in surplus)
        log_event(self.log, "sessions.evicted", user_id=int(user_id), sessions=evicted)
        return evicted

    def list_sessions(self, user_id: int) -> list[SessionOut]:
        """Live (non-expired) sessions of ``user_id``, newest first."""
        now = self.now_utc()
        return [
            SessionOut.from_record(r)
            for r in self.store.list_for_user(int(user_id))
            if r.expires_at > now
        ]

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete every expired session across all users."""
        purged = self.store.delete_expired(now or self.now_utc())
        log_event(self.log, "sessions.purged", sessions=purged)
        return purged
