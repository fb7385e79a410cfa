from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest
from equiprent.services._shared.dto import RequestMeta
from equiprent.services._shared.errors import (
    AlreadyRegisteredError,
    AvatarRequiredError,
    InvalidOrExpiredOtpError,
    RegistrationDataNotFoundError,
    RegistrationSessionExpiredError,
    WeakPasswordError,
)
from equiprent.services._shared.ports import NewUser, UploadedFile
from equiprent.services.otp.service import PENDING_PREFIX
from equiprent.services.registration.dto import (
    CompleteRegistrationIn,
    RegisterInitIn,
    VerifyEmailIn,
)
from freezegun import freeze_time

EMAIL = "new@x.com"
AVATAR = UploadedFile(data=b"\xff\xd8\xff", filename="face.jpg", content_type="image/jpeg")
META = RequestMeta(ip="198.51.100.4", user_agent="pytest")


def _init(registration, email=EMAIL, password="Str0ngPass"):
    return registration.register_init(RegisterInitIn(email, password, "Nia"), META)


def _verify(registration, notifier, email=EMAIL):
    return registration.verify_email(VerifyEmailIn(email, notifier.last_otp(email)))


def _complete(registration, temp_token, email=EMAIL, avatar=AVATAR, **kwargs):
    return registration.complete_registration(
        CompleteRegistrationIn(
            email=email,
            temp_token=temp_token,
            user_type=kwargs.pop("user_type", "owner"),
            nickname=kwargs.pop("nickname", "nia_rents"),
            avatar=avatar,
            **kwargs,
        )
    )


def _wrong(code: str) -> str:
    return f"{(int(code) + 1) % 1_000_000:06d}"


def test_full_registration_flow(registration, notifier, users, tokens, files, refresh_store, otp):
    sent = _init(registration, email=" New@X.com ")
    verified = _verify(registration, notifier)
    assert sent.email == EMAIL
    assert timedelta(minutes=9) < sent.otp_expires_at - datetime.now(UTC) <= timedelta(minutes=10)
    assert verified.expires_in == 900
    assert tokens.verify_registration_token(verified.temp_token)["email"] == EMAIL

    out = _complete(registration, verified.temp_token, phone="+34 600", bio="Tents & stoves")

    user = users.find_by_email(EMAIL)
    assert out.user.id == user.id
    assert (user.first_name, user.last_name, user.user_type) == ("Nia", "nia_rents", "owner")
    assert user.is_verified is True
    assert user.avatar in files.files
    assert tokens.verify_access_token(out.tokens.access_token)["sub"] == str(user.id)
    [session] = refresh_store.list_for_user(user.id)
    assert session.ip == META.ip
    assert not otp.has_pending(EMAIL)


def test_password_is_hashed_at_init(registration, otp, hasher):
    _init(registration)

    pending = otp.get_pending(EMAIL)
    assert "password" not in pending
    assert hasher.compare("Str0ngPass", pending["password_hash"])


def test_init_rejects_existing_account(registration, users):
    users.create(NewUser(email=EMAIL, password_hash="x"))

    with pytest.raises(AlreadyRegisteredError):
        _init(registration)


def test_init_rejects_weak_password(registration, otp):
    with pytest.raises(WeakPasswordError):
        _init(registration, password="password1")
    assert not otp.has_pending(EMAIL)


def test_init_survives_notifier_failure(registration, notifier, monkeypatch, otp):
    def boom(email, code):
        raise ConnectionError("smtp down")

    monkeypatch.setattr(notifier, "send_otp", boom)

    assert _init(registration).message == "Verification code sent"
    assert otp.has_pending(EMAIL)


def test_wrong_otp_does_not_consume_the_code(registration, notifier):
    _init(registration)
    code = notifier.last_otp(EMAIL)

    with pytest.raises(InvalidOrExpiredOtpError):
        registration.verify_email(VerifyEmailIn(EMAIL, _wrong(code)))

    assert registration.verify_email(VerifyEmailIn(EMAIL, code)).temp_token


def test_otp_is_single_use(registration, notifier):
    _init(registration)
    code = notifier.last_otp(EMAIL)
    registration.verify_email(VerifyEmailIn(EMAIL, code))

    with pytest.raises(InvalidOrExpiredOtpError):
        registration.verify_email(VerifyEmailIn(EMAIL, code))


def test_otp_expires_after_ten_minutes(registration, notifier):
    with freeze_time("2025-06-01 10:00:00") as frozen:
        _init(registration)
        frozen.tick(timedelta(minutes=10))

        with pytest.raises(InvalidOrExpiredOtpError):
            _verify(registration, notifier)


def test_verify_without_pending_registration(registration, notifier, ephemeral, otp):
    _init(registration)
    ephemeral.delete(PENDING_PREFIX + EMAIL)

    with pytest.raises(RegistrationSessionExpiredError):
        _verify(registration, notifier)
    assert not otp.matches_otp(EMAIL, notifier.last_otp(EMAIL))


def test_resend_replaces_code(registration, notifier):
    _init(registration)
    first = notifier.last_otp(EMAIL)

    out = registration.resend_otp("NEW@x.com")

    assert out.message == "Verification code resent"
    assert len(notifier.otps[EMAIL]) == 2
    assert notifier.otps[EMAIL][0] == first
    _verify(registration, notifier)


def test_resend_requires_pending_registration(registration, notifier):
    with pytest.raises(RegistrationSessionExpiredError):
        registration.resend_otp(EMAIL)
    assert notifier.otps == {}


def test_restart_replaces_pending_data(registration, otp, hasher):
    _init(registration, password="Str0ngPass")
    _init(registration, password="Diff3rentPass")

    assert hasher.compare("Diff3rentPass", otp.get_pending(EMAIL)["password_hash"])


# --------------------------------------------------------------------------- #
# Completion checks, in order
# --------------------------------------------------------------------------- #


def test_complete_rejects_bad_token(registration, notifier):
    _init(registration)
    _verify(registration, notifier)

    with pytest.raises(RegistrationSessionExpiredError):
        _complete(registration, "not-a-token", avatar=None)


def test_complete_rejects_token_for_other_email(registration, notifier, tokens):
    _init(registration)
    _verify(registration, notifier)

    with pytest.raises(RegistrationSessionExpiredError):
        _complete(registration, tokens.issue_registration_token("other@x.com"))


def test_complete_rejects_expired_token(registration, notifier):
    with freeze_time("2025-06-01 10:00:00") as frozen:
        _init(registration)
        verified = _verify(registration, notifier)
        frozen.tick(timedelta(minutes=15, seconds=1))

        with pytest.raises(RegistrationSessionExpiredError):
            _complete(registration, verified.temp_token)


def test_complete_rejects_email_claimed_meanwhile(registration, notifier, users):
    _init(registration)
    verified = _verify(registration, notifier)
    users.create(NewUser(email=EMAIL, password_hash="x"))

    with pytest.raises(AlreadyRegisteredError):
        _complete(registration, verified.temp_token, avatar=None)


@pytest.mark.parametrize("avatar", [None, UploadedFile(data=b"", filename="empty.png")])
def test_complete_requires_avatar(registration, notifier, avatar, users):
    _init(registration)
    verified = _verify(registration, notifier)

    with pytest.raises(AvatarRequiredError):
        _complete(registration, verified.temp_token, avatar=avatar)
    assert users.find_by_email(EMAIL) is None


def test_complete_maps_upload_failure_to_avatar_required(registration, notifier, files, monkeypatch):
    _init(registration)
    verified = _verify(registration, notifier)

    def broken(file, folder):
        raise OSError("disk full")

    monkeypatch.setattr(files, "upload", broken)

    with pytest.raises(AvatarRequiredError):
        _complete(registration, verified.temp_token)


def test_complete_without_pending_data_uploads_nothing(registration, notifier, ephemeral, users, files):
    _init(registration)
    verified = _verify(registration, notifier)
    ephemeral.delete(PENDING_PREFIX + EMAIL)

    with pytest.raises(RegistrationDataNotFoundError):
        _complete(registration, verified.temp_token)
    assert users.find_by_email(EMAIL) is None
    assert files.files == {}


def test_complete_with_pending_data_missing_the_password_hash(registration, notifier, ephemeral, users):
    _init(registration)
    verified = _verify(registration, notifier)
    ephemeral.set(PENDING_PREFIX + EMAIL, json.dumps({"email": EMAIL, "first_name": "Nia"}), 900)

    with pytest.raises(RegistrationDataNotFoundError):
        _complete(registration, verified.temp_token)
    assert users.find_by_email(EMAIL) is None


def test_complete_twice_fails_already_registered(registration, notifier):
    _init(registration)
    verified = _verify(registration, notifier)
    _complete(registration, verified.temp_token)

    with pytest.raises(AlreadyRegisteredError):
        _complete(registration, verified.temp_token)
