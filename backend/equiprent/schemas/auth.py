"""Authentication-related Marshmallow schemas.

Password strength is deliberately not validated here: the service layer owns
the policy and reports a precise ``weak_password`` reason.
"""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate, validates_schema

USER_TYPES = ("owner", "renter")

_email = {"required": True, "validate": validate.Length(max=254)}
_password = {"required": True, "validate": validate.Length(min=1, max=128)}


class _PasswordConfirmationMixin:
    """Require ``confirm_password`` to repeat ``new_password``."""

    @validates_schema
    def passwords_match(self, data: dict[str, Any], **_: Any) -> None:
        if data.get("new_password") != data.get("confirm_password"):
            raise ValidationError("Passwords do not match", field_name="confirm_password")


# ----------------------------- Input payloads ----------------------------- #


class SignUpSchema(Schema):
    """Input payload for direct account registration."""

    email = fields.Email(**_email)
    password = fields.String(**_password)
    first_name = fields.String(load_default=None, validate=validate.Length(max=100))
    last_name = fields.String(load_default=None, validate=validate.Length(max=100))
    user_type = fields.String(load_default="renter", validate=validate.OneOf(USER_TYPES))
    phone = fields.String(load_default=None, validate=validate.Length(max=32))


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(**_email)
    password = fields.String(**_password)


class RegisterInitSchema(Schema):
    """First step of the verified registration flow."""

    email = fields.Email(**_email)
    password = fields.String(**_password)
    first_name = fields.String(required=True, validate=validate.Length(min=1, max=100))


class VerifyEmailSchema(Schema):
    email = fields.Email(**_email)
    otp = fields.String(
        required=True, validate=validate.Regexp(r"^[0-9]{6}\Z", error="Must be a 6-digit code.")
    )


class ResendOtpSchema(Schema):
    email = fields.Email(**_email)


class CompleteRegistrationSchema(Schema):
    """Multipart form fields of the final registration step (``avatar`` travels as a file)."""

    class Meta:
        unknown = EXCLUDE

    email = fields.Email(**_email)
    temp_token = fields.String(required=True, validate=validate.Length(min=1))
    user_type = fields.String(required=True, validate=validate.OneOf(USER_TYPES))
    nickname = fields.String(required=True, validate=validate.Length(min=1, max=100))
    phone = fields.String(load_default=None, validate=validate.Length(max=32))
    bio = fields.String(load_default=None, validate=validate.Length(max=500))


class ChangePasswordSchema(_PasswordConfirmationMixin, Schema):
    current_password = fields.String(**_password)
    new_password = fields.String(**_password)
    confirm_password = fields.String(**_password)


class ForgotPasswordSchema(Schema):
    email = fields.Email(**_email)


class ResetPasswordSchema(_PasswordConfirmationMixin, Schema):
    token = fields.String(required=True, validate=validate.Length(min=1))
    new_password = fields.String(**_password)
    confirm_password = fields.String(**_password)


class ResetTokenQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    token = fields.String(required=True, validate=validate.Length(min=1))


# ---------------------------- Response payloads --------------------------- #


class TokenResponseSchema(Schema):
    """Response payload containing an access token."""

    access_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")


class ProfileSchema(Schema):
    """Public representation of an account."""

    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    phone = fields.String(allow_none=True)
    bio = fields.String(allow_none=True)
    avatar = fields.String(allow_none=True)
    user_type = fields.String(required=True)
    is_verified = fields.Boolean(required=True)
    created_at = fields.DateTime(allow_none=True)


class OtpSentSchema(Schema):
    message = fields.String(required=True)
    email = fields.Email(required=True)
    otp_expires_at = fields.DateTime(required=True)


class EmailVerifiedSchema(Schema):
    temp_token = fields.String(required=True)
    expires_in = fields.Integer(required=True)


class ResetTokenInfoSchema(Schema):
    valid = fields.Boolean(required=True)
    email = fields.Email(allow_none=True)
    expires_at = fields.DateTime(allow_none=True)


class SessionSchema(Schema):
    """Audit view of a refresh session (the token hash is never exposed)."""

    id = fields.Integer(required=True)
    created_at = fields.DateTime(required=True)
    expires_at = fields.DateTime(required=True)
    ip = fields.String(allow_none=True)
    user_agent = fields.String(allow_none=True)
