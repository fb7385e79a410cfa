"""Transaction boundary used by the database-backed stores in ``infra/db``."""

from .base import UnitOfWork
from .sqlalchemy_uow import SQLAlchemyUnitOfWork

__all__ = ["SQLAlchemyUnitOfWork", "UnitOfWork"]
