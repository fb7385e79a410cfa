"""Shared persistence plumbing for the account and session repositories.

Repositories stage and query rows on the session they were given. They do
not commit: the surrounding :class:`~equiprent.uow.UnitOfWork` settles the
transaction.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, cast

from sqlalchemy import select
from sqlalchemy.orm import Session

from equiprent.core.extensions import db

M = TypeVar("M")


class BaseRepository(Generic[M]):
    """Insert and primary-key lookup for one mapped class with an integer ``id`` column."""

    model: type[M]

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        """The injected session, else the Flask-scoped ``db.session``."""
        return self._session if self._session is not None else cast(Session, db.session)

    def add(self, row: M) -> M:
        """Insert ``row`` and flush so its ``id`` is populated."""
        self.session.add(row)
        self.flush()
        return row

    def get(self, row_id: Any) -> M | None:
        stmt = select(self.model).where(self.model.id == row_id)  # type: ignore[attr-defined]
        return self.session.scalars(stmt).first()

    def flush(self) -> None:
        self.session.flush()
