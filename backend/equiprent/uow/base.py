"""Unit of Work contract for account and session persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from equiprent.repositories import RefreshTokenRepository, UserRepository


class UnitOfWork(ABC):
    """
    One atomic batch of writes against ``users`` and ``refresh_tokens``.

    Implementations expose both repositories on a single transaction and
    settle it when the ``with`` block ends: commit on a clean exit, rollback
    when the block raises. A store adapter opens one per port call.
    """

    users: UserRepository
    refresh_tokens: RefreshTokenRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
