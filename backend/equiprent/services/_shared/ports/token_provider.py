from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Protocol

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
PASSWORD_RESET_PURPOSE = "password_reset"
EMAIL_VERIFIED_STAGE = "email_verified"


class TokenError(Exception):
    """Base class for token verification failures raised by providers."""


class InvalidTokenError(TokenError):
    """Malformed token or bad signature."""


class TokenExpiredError(TokenError):
    """Signature is valid but ``exp`` is in the past."""


class TokenPurposeMismatchError(TokenError):
    """Signature is valid but the ``type``/``purpose``/``stage`` discriminant is wrong."""


class TokenProvider(Protocol):
    """
    Port for issuing and verifying the four JWT families.

    Each family is signed with its own secret:

    * access tokens (``type="access"``),
    * refresh tokens (``type="refresh"``),
    * password-reset tokens (``purpose="password_reset"``),
    * registration-completion tokens (``stage="email_verified"``).

    Verification failures MUST surface as :class:`TokenError` subclasses so
    services never see library-specific exceptions.
    """

    def issue_access_token(self, subject_id: int | str, email: str, roles: Iterable[str]) -> str: ...

    def issue_refresh_token(self, subject_id: int | str, email: str, roles: Iterable[str]) -> str: ...

    def verify(self, token: str, secret: str) -> dict[str, Any]: ...

    def verify_access_token(self, token: str) -> dict[str, Any]: ...

    def verify_refresh_token(self, token: str) -> dict[str, Any]: ...

    def decode_unsafe(self, token: str) -> dict[str, Any]: ...

    def issue_password_reset_token(self, subject_id: int | str, email: str) -> str: ...

    def verify_password_reset_token(self, token: str) -> dict[str, Any]: ...

    def issue_registration_token(self, email: str) -> str: ...

    def verify_registration_token(self, token: str) -> dict[str, Any]: ...

    def get_expires_at(self, token: str) -> datetime | None: ...
