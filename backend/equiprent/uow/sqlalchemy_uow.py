"""Unit of Work bound to the Flask-SQLAlchemy session."""

from __future__ import annotations

from sqlalchemy.orm import Session

from equiprent.core.extensions import db
from equiprent.repositories import RefreshTokenRepository, UserRepository
from equiprent.uow.base import UnitOfWork


class SQLAlchemyUnitOfWork(UnitOfWork):
    """
    Both repositories share ``session`` so a block's writes land together.

    :param session: Explicit session; the request-scoped ``db.session`` when omitted.
    """

    def __init__(self, session: Session | None = None) -> None:
        self.session = db.session if session is None else session
        self.users = UserRepository(session=self.session)
        self.refresh_tokens = RefreshTokenRepository(session=self.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
