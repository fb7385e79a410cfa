"""
Service-layer errors for accounts, sessions and registration.

Nothing here knows about Flask or HTTP status codes. Each error carries a
stable snake_case ``code``; :meth:`BaseService.translate_exceptions` turns
it into the problem response the client sees.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """``True`` when the driver message of ``exc`` names ``constraint_name``."""
    detail = str(exc.orig) if exc.orig is not None else ""
    return constraint_name.lower() in detail.lower()


class ServiceError(Exception):
    """Root of every error a service may raise on purpose."""

    code: ClassVar[str] = "bad_request"


class DomainRuleError(ServiceError):
    """
    Service error carrying a stable ``code`` and a client-safe default message.

    :param message: Optional override of :attr:`default_message`.
    :type message: str | None
    """

    default_message: ClassVar[str] = "Request rejected"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(DomainRuleError):
    """Family of errors meaning the caller could not be authenticated (401)."""

    code = "unauthorized"
    default_message = "Unauthorized"


# Lookups


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """``entity`` identified by ``key`` does not exist."""

    entity: str
    key: str | int

    code: ClassVar[str] = "not_found"

    def __str__(self) -> str:
        return f"{self.entity} {self.key} does not exist"


@dataclass(slots=True)
class UserNotFoundError(NotFoundError):
    """Raised when a user referenced by id or token no longer exists."""

    entity: str = "User"
    key: str | int = ""

    code: ClassVar[str] = "user_not_found"

    def __str__(self) -> str:  # pragma: no cover
        return "User not found"


class AlreadyRegisteredError(DomainRuleError):
    """The email is already bound to an account."""

    code = "already_registered"
    default_message = "Email is already registered"


# Authentication (401)


class InvalidCredentialsError(AuthenticationError):
    """Unknown email or wrong password; the two cases are indistinguishable."""

    code = "invalid_credentials"
    default_message = "Invalid email or password"


class RefreshTokenExpiredError(AuthenticationError):
    code = "refresh_token_expired"
    default_message = "Refresh token has expired"


class InvalidRefreshTokenError(AuthenticationError):
    """Missing, malformed or foreign-signed refresh token."""

    code = "invalid_refresh_token"
    default_message = "Invalid refresh token"


class RefreshTokenReuseDetectedError(AuthenticationError):
    """A refresh token with no live session was presented; all sessions were revoked."""

    code = "refresh_token_reuse_detected"
    default_message = "Refresh token reuse detected; all sessions have been revoked"


# Rejected requests (400)


class InvalidCurrentPasswordError(DomainRuleError):
    code = "invalid_current_password"
    default_message = "Current password is incorrect"


class PasswordUnchangedError(DomainRuleError):
    code = "password_unchanged"
    default_message = "New password must differ from the current password"


class WeakPasswordError(DomainRuleError):
    """
    Raised when a password fails the strength policy.

    :param reason: One of ``too_short``, ``missing_uppercase``,
        ``missing_lowercase``, ``missing_digit``, ``too_common``.
    :type reason: str
    """

    code = "weak_password"
    default_message = "Password does not meet the strength policy"

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message)


class InvalidOrExpiredOtpError(DomainRuleError):
    code = "invalid_or_expired_otp"
    default_message = "Invalid or expired verification code"


class RegistrationSessionExpiredError(DomainRuleError):
    code = "registration_session_expired"
    default_message = "Registration session has expired; please start again"


class RegistrationDataNotFoundError(DomainRuleError):
    code = "registration_data_not_found"
    default_message = "Registration data not found; please start again"


class AvatarRequiredError(DomainRuleError):
    code = "avatar_required"
    default_message = "An avatar image is required"


class InvalidOrExpiredResetTokenError(DomainRuleError):
    code = "invalid_or_expired_reset_token"
    default_message = "Invalid or expired password reset token"
