"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    ChangePasswordSchema,
    CompleteRegistrationSchema,
    EmailVerifiedSchema,
    ForgotPasswordSchema,
    LoginSchema,
    OtpSentSchema,
    ProfileSchema,
    RegisterInitSchema,
    ResendOtpSchema,
    ResetPasswordSchema,
    ResetTokenInfoSchema,
    ResetTokenQuerySchema,
    SessionSchema,
    SignUpSchema,
    TokenResponseSchema,
    VerifyEmailSchema,
)

__all__ = [
    "ChangePasswordSchema",
    "CompleteRegistrationSchema",
    "EmailVerifiedSchema",
    "ForgotPasswordSchema",
    "LoginSchema",
    "OtpSentSchema",
    "ProfileSchema",
    "RegisterInitSchema",
    "ResendOtpSchema",
    "ResetPasswordSchema",
    "ResetTokenInfoSchema",
    "ResetTokenQuerySchema",
    "SessionSchema",
    "SignUpSchema",
    "TokenResponseSchema",
    "VerifyEmailSchema",
]
