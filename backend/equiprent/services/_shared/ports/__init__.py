"""
equiprent.services._shared.ports
================================

Collection of *ports* (hexagonal interfaces) that define the contracts
between the auth services and their infrastructure.

Modules
-------
- :mod:`password_hasher`: :class:`~.PasswordHasher`, salted cost-parameterized hashing.
- :mod:`token_provider`: :class:`~.TokenProvider` and the ``TokenError`` family.
- :mod:`ephemeral_store`: :class:`~.EphemeralStore`, TTL'd key/value state.
- :mod:`refresh_token_store`: :class:`~.RefreshTokenStore`, the durable session ledger.
- :mod:`user_store`: :class:`~.UserStore`, durable accounts.
- :mod:`file_storage`: :class:`~.FileStorage`, avatar uploads.
- :mod:`notifier`: :class:`~.Notifier`, OTP and reset-link delivery.

Design Notes
------------
Concrete adapters (Redis, SQLAlchemy, PyJWT, Werkzeug, local disk) live under
``equiprent.infra``. ``InMemory*`` variants live next to their port and back
the unit tests.
"""

from __future__ import annotations

from .ephemeral_store import EphemeralStore, InMemoryEphemeralStore
from .file_storage import FileStorage, InMemoryFileStorage, UploadedFile
from .notifier import InMemoryNotifier, Notifier
from .password_hasher import PasswordHasher
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
)
from .token_provider import (
    InvalidTokenError,
    TokenError,
    TokenExpiredError,
    TokenProvider,
    TokenPurposeMismatchError,
)
from .user_store import InMemoryUserStore, NewUser, UserRecord, UserStore

__all__ = [
    "EphemeralStore",
    "FileStorage",
    "InMemoryEphemeralStore",
    "InMemoryFileStorage",
    "InMemoryNotifier",
    "InMemoryRefreshTokenStore",
    "InMemoryUserStore",
    "InvalidTokenError",
    "NewUser",
    "Notifier",
    "PasswordHasher",
    "RefreshTokenRecord",
    "RefreshTokenStore",
    "TokenError",
    "TokenExpiredError",
    "TokenProvider",
    "TokenPurposeMismatchError",
    "UploadedFile",
    "UserRecord",
    "UserStore",
]
