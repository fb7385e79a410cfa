# equiprent/infra/db/sqlalchemy_refresh_token_store.py
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from equiprent.infra.db._convert import refresh_token_record
from equiprent.models import RefreshToken
from equiprent.services._shared.ports import RefreshTokenRecord, RefreshTokenStore
from equiprent.uow import SQLAlchemyUnitOfWork


class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    :class:`RefreshTokenStore` backed by the ``refresh_tokens`` table.

    .. note::
       Deletes are single ``DELETE`` statements, so a record removed
       twice (concurrent rotation) simply reports zero rows the second time.
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
        with SQLAlchemyUnitOfWork() as uow:
            row = uow.refresh_tokens.add(
                RefreshToken(
                    user_id=int(user_id),
                    token_hash=token_hash,
                    expires_at=expires_at,
                    created_at=created_at,
                    ip=ip,
                    user_agent=user_agent,
                )
            )
            return refresh_token_record(row)

    def list_for_user(self, user_id: int) -> list[RefreshTokenRecord]:
        with SQLAlchemyUnitOfWork() as uow:
            return [refresh_token_record(r) for r in uow.refresh_tokens.list_for_user(int(user_id))]

    def delete_by_id(self, record_id: int) -> bool:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.delete_by_id(int(record_id))

    def delete_many(self, record_ids: Iterable[int]) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.delete_by_ids(record_ids)

    def delete_all_for_user(self, user_id: int) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.delete_for_user(int(user_id))

    def delete_expired(self, now: datetime) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.delete_expired(now)
