from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from equiprent.services._shared.ports import RefreshTokenRecord


@dataclass(frozen=True, slots=True)
class SessionOut:
    """
    Audit view of a refresh session (the token hash is never exposed).

    :param id: Session record id.
    :param created_at: Issuance time (UTC).
    :param expires_at: Expiry (UTC).
    :param ip: Client address at issuance.
    :param user_agent: Client user agent at issuance.
    """

    id: int
    created_at: datetime
    expires_at: datetime
    ip: str | None
    user_agent: str | None

    @classmethod
    def from_record(cls, record: RefreshTokenRecord) -> SessionOut:
        return cls(
            id=record.id,
            created_at=record.created_at,
            expires_at=record.expires_at,
            ip=record.ip,
            user_agent=record.user_agent,
        )
