"""
DTOs for RegistrationService.

Contracts for the OTP-verified registration flow:
``init → verify → complete`` (plus ``resend``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from equiprent.services._shared.ports import UploadedFile
from equiprent.services.auth.dto import ProfileOut, TokenPairOut

# --------------------------------------------------------------------------- #
# Input
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterInitIn:
    """
    First step: claim an email and receive an OTP out-of-band.

    :param email: Login email (normalized by the service).
    :type email: str
    :param password: Raw password (policy-checked and hashed immediately).
    :type password: str
    :param first_name: Given name.
    :type first_name: str
    """

    email: str
    password: str
    first_name: str


@dataclass(frozen=True, slots=True)
class VerifyEmailIn:
    """
    Second step: prove control of the email.

    :param email: Email used at init.
    :type email: str
    :param otp: 6-digit code received by e-mail.
    :type otp: str
    """

    email: str
    otp: str


@dataclass(frozen=True, slots=True)
class CompleteRegistrationIn:
    """
    Final step: create the account.

    :param email: Email used at init.
    :type email: str
    :param temp_token: Completion token returned by the verify step.
    :type temp_token: str
    :param user_type: ``owner`` or ``renter``.
    :type user_type: str
    :param nickname: Public nickname (stored as ``last_name``).
    :type nickname: str
    :param phone: Optional phone number.
    :type phone: str | None
    :param bio: Optional short biography.
    :type bio: str | None
    :param avatar: Uploaded avatar image (required).
    :type avatar: UploadedFile | None
    """

    email: str
    temp_token: str
    user_type: str
    nickname: str
    phone: str | None = None
    bio: str | None = None
    avatar: UploadedFile | None = None


# --------------------------------------------------------------------------- #
# Output
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class OtpSentOut:
    """
    Acknowledgement of an OTP delivery (init and resend).

    The code itself is never returned.

    :param message: Human-readable status.
    :param email: Normalized email.
    :param otp_expires_at: When the code stops being accepted (UTC).
    """

    message: str
    email: str
    otp_expires_at: datetime


@dataclass(frozen=True, slots=True)
class EmailVerifiedOut:
    """
    :param temp_token: Short-lived completion token.
    :param expires_in: Token lifetime in seconds.
    """

    temp_token: str
    expires_in: int


@dataclass(frozen=True, slots=True)
class RegistrationOut:
    """
    Result of a completed registration.

    :param tokens: Freshly issued token pair (a session is already persisted).
    :param user: Public profile of the created account.
    """

    tokens: TokenPairOut
    user: ProfileOut
