# equiprent/infra/db/sqlalchemy_user_store.py
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from equiprent.infra.db._convert import user_record
from equiprent.models import User, UserType
from equiprent.services._shared.errors import AlreadyRegisteredError, violates
from equiprent.services._shared.ports import NewUser, UserRecord, UserStore
from equiprent.uow import SQLAlchemyUnitOfWork


class SQLAlchemyUserStore(UserStore):
    """
    :class:`UserStore` backed by the ``users`` table.

    Each call runs in its own :class:`SQLAlchemyUnitOfWork` (commit on exit).
    """

    def find_by_email(self, email: str) -> UserRecord | None:
        with SQLAlchemyUnitOfWork() as uow:
            row = uow.users.get_by_email(email)
            return user_record(row) if row else None

    def find_by_id(self, user_id: int) -> UserRecord | None:
        with SQLAlchemyUnitOfWork() as uow:
            row = uow.users.get(int(user_id))
            return user_record(row) if row else None

    def create(self, data: NewUser) -> UserRecord:
        try:
            with SQLAlchemyUnitOfWork() as uow:
                row = uow.users.add(
                    User(
                        email=data.email,
                        password_hash=data.password_hash,
                        first_name=data.first_name,
                        last_name=data.last_name,
                        phone=data.phone,
                        bio=data.bio,
                        avatar=data.avatar,
                        user_type=UserType(data.user_type),
                        is_verified=data.is_verified,
                    )
                )
                record = user_record(row)
        except IntegrityError as exc:
            if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                raise AlreadyRegisteredError() from exc
            raise
        return record

    def update_password(self, user_id: int, password_hash: str) -> bool:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.users.set_password_hash(int(user_id), password_hash)
