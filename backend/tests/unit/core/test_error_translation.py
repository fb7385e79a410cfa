from __future__ import annotations

import pytest
from equiprent.core import errors as api_errors
from equiprent.services._shared.base import BaseService
from equiprent.services._shared.errors import (
    AlreadyRegisteredError,
    AvatarRequiredError,
    InvalidCredentialsError,
    InvalidOrExpiredOtpError,
    RefreshTokenReuseDetectedError,
    UserNotFoundError,
    WeakPasswordError,
)


@pytest.fixture
def translator():
    return BaseService()


@pytest.mark.parametrize(
    ("exc", "status", "code"),
    [
        (UserNotFoundError(key=1), 404, "user_not_found"),
        (AlreadyRegisteredError(), 409, "already_registered"),
        (InvalidCredentialsError(), 401, "invalid_credentials"),
        (RefreshTokenReuseDetectedError(), 401, "refresh_token_reuse_detected"),
        (InvalidOrExpiredOtpError(), 400, "invalid_or_expired_otp"),
        (AvatarRequiredError(), 400, "avatar_required"),
    ],
)
def test_service_errors_map_to_http(translator, exc, status, code):
    translated = translator.translate_exceptions(exc)

    assert isinstance(translated, api_errors.APIError)
    assert (translated.status_code, translated.code) == (status, code)


def test_weak_password_carries_reason(translator):
    translated = translator.translate_exceptions(WeakPasswordError("too_common"))

    assert translated.status_code == 400
    assert translated.details == {"reason": "too_common"}


def test_foreign_exceptions_pass_through(translator):
    exc = KeyError("x")
    assert translator.translate_exceptions(exc) is exc


def test_domain_messages_are_client_safe():
    assert str(InvalidCredentialsError()) == "Invalid email or password"
    assert str(UserNotFoundError(key=5)) == "User not found"
    assert InvalidCredentialsError("custom").message == "custom"
