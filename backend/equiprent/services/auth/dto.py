# equiprent/services/auth/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from equiprent.core.config import parse_duration
from equiprent.services._shared.dto import RequestMeta
from equiprent.services._shared.ports.user_store import UserRecord

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SignUpIn:
    """
    Input DTO for direct (non-OTP) sign-up.

    :param email: User email (normalized by the service).
    :type email: str
    :param password: Raw password (policy-checked, then hashed).
    :type password: str
    :param first_name: Given name.
    :type first_name: str | None
    :param last_name: Family name / nickname.
    :type last_name: str | None
    :param user_type: ``owner`` or ``renter``.
    :type user_type: str
    :param phone: Optional phone number.
    :type phone: str | None
    """

    email: str
    password: str
    first_name: str | None = None
    last_name: str | None = None
    user_type: str = "renter"
    phone: str | None = None


@dataclass(frozen=True, slots=True)
class SignInIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    """
    Input DTO for an authenticated password change.

    :param user_id: Authenticated user id.
    :type user_id: int
    :param current_password: Password currently on file.
    :type current_password: str
    :param new_password: Replacement password.
    :type new_password: str
    """

    user_id: int
    current_password: str
    new_password: str


@dataclass(frozen=True, slots=True)
class ResetPasswordIn:
    """
    Input DTO for completing a password reset.

    :param token: Signed reset token received by e-mail.
    :type token: str
    :param new_password: Replacement password.
    :type new_password: str
    """

    token: str
    new_password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class ProfileOut:
    """Public view of a user account (never carries the password hash)."""

    id: int
    email: str
    first_name: str | None
    last_name: str | None
    phone: str | None
    bio: str | None
    avatar: str | None
    user_type: str
    is_verified: bool
    created_at: datetime | None

    @classmethod
    def from_record(cls, user: UserRecord) -> ProfileOut:
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
            bio=user.bio,
            avatar=user.avatar,
            user_type=user.user_type,
            is_verified=user.is_verified,
            created_at=user.created_at,
        )


@dataclass(frozen=True, slots=True)
class ResetTokenInfoOut:
    """
    Result of inspecting a still-valid reset token.

    :param email: Account the token was issued for.
    :param expires_at: Token expiry (aware UTC).
    """

    email: str
    expires_at: datetime | None


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """
    Immutable auth configuration, read once by the app factory.

    :param access_secret: Access-token signing key.
    :param refresh_secret: Refresh-token signing key.
    :param reset_secret: Password-reset signing key.
    :param registration_secret: Registration-completion signing key.
    :param access_ttl: Access-token lifetime.
    :param refresh_ttl: Refresh-token (and session record) lifetime.
    :param max_sessions: Concurrent refresh sessions kept per user.
    :param frontend_url: Base URL for password-reset links.
    """

    access_secret: str
    refresh_secret: str
    reset_secret: str
    registration_secret: str
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)
    reset_ttl: timedelta = timedelta(hours=1)
    registration_ttl: timedelta = timedelta(minutes=15)
    otp_ttl: timedelta = timedelta(minutes=10)
    pending_registration_ttl: timedelta = timedelta(minutes=15)
    verified_marker_ttl: timedelta = timedelta(minutes=15)
    max_sessions: int = 5
    frontend_url: str = "http://localhost:5173"
    algorithm: str = "HS256"

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> AuthSettings:
        """
        Build settings from a Flask config (or any mapping).

        :raises ValueError: If a duration is malformed or ``max_sessions < 1``.
        """
        access_secret = cfg["JWT_SECRET"]
        max_sessions = int(cfg.get("REFRESH_TOKEN_MAX_SESSIONS", 5))
        if max_sessions < 1:
            raise ValueError("REFRESH_TOKEN_MAX_SESSIONS must be >= 1")
        return cls(
            access_secret=access_secret,
            refresh_secret=cfg["JWT_REFRESH_SECRET"],
            reset_secret=cfg["JWT_RESET_SECRET"],
            registration_secret=cfg.get("JWT_TEMP_SECRET") or access_secret,
            access_ttl=parse_duration(cfg.get("JWT_SECRET_EXP", "15m")),
            refresh_ttl=parse_duration(cfg.get("JWT_REFRESH_SECRET_EXP", "7d")),
            max_sessions=max_sessions,
            frontend_url=str(cfg.get("FRONTEND_URL") or "http://localhost:5173").rstrip("/"),
        )


__all__ = [
    "AuthSettings",
    "ChangePasswordIn",
    "ProfileOut",
    "RequestMeta",
    "ResetPasswordIn",
    "ResetTokenInfoOut",
    "SignInIn",
    "SignUpIn",
    "TokenPairOut",
]
