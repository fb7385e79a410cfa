"""Service layer public API.

This package exposes the auth services and their DTOs so that callers can
import from :mod:`equiprent.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``equiprent.services._shared.base``)
    * :class:`BaseService`

- Auth orchestrator (from ``equiprent.services.auth``)
    * :class:`AuthService`, :class:`AuthSettings`
    * DTOs: :class:`SignUpIn`, :class:`SignInIn`, :class:`ChangePasswordIn`,
      :class:`ResetPasswordIn`, :class:`TokenPairOut`, :class:`ProfileOut`

- Registration flow (from ``equiprent.services.registration``)
    * :class:`RegistrationService`

- Building blocks
    * :class:`OtpService`, :class:`RefreshSessionService`
"""

from __future__ import annotations

from ._shared.base import BaseService
from .auth.dto import (
    AuthSettings,
    ChangePasswordIn,
    ProfileOut,
    ResetPasswordIn,
    SignInIn,
    SignUpIn,
    TokenPairOut,
)
from .auth.service import AuthService
from .otp import OtpService
from .registration.service import RegistrationService
from .sessions import RefreshSessionService

__all__ = [
    "AuthService",
    "AuthSettings",
    "BaseService",
    "ChangePasswordIn",
    "OtpService",
    "ProfileOut",
    "RefreshSessionService",
    "RegistrationService",
    "ResetPasswordIn",
    "SignInIn",
    "SignUpIn",
    "TokenPairOut",
]
