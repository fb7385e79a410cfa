from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from equiprent.services._shared.dto import RequestMeta
from equiprent.services._shared.errors import (
    AlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidCurrentPasswordError,
    InvalidOrExpiredResetTokenError,
    InvalidRefreshTokenError,
    PasswordUnchangedError,
    RefreshTokenExpiredError,
    RefreshTokenReuseDetectedError,
    UserNotFoundError,
    WeakPasswordError,
)
from equiprent.services._shared.ports import NewUser
from equiprent.services.auth.dto import (
    ChangePasswordIn,
    ResetPasswordIn,
    SignInIn,
    SignUpIn,
)
from equiprent.services.auth.service import AuthService
from freezegun import freeze_time

EMAIL = "a@x.com"
PASSWORD = "Secret1"
META = RequestMeta(ip="203.0.113.7", user_agent="pytest")


@pytest.fixture
def user(users, hasher):
    return users.create(NewUser(email=EMAIL, password_hash=hasher.hash(PASSWORD), first_name="Ann"))


@pytest.fixture
def capped_auth(auth, sessions, settings):
    """``auth`` with the per-user session cap lowered to one."""
    sessions.settings = replace(settings, max_sessions=1)
    return auth


def _sign_in(auth, password=PASSWORD, email=EMAIL):
    return auth.sign_in(SignInIn(email=email, password=password), META)


def _reset_token(notifier, email=EMAIL):
    url = notifier.last_reset_url(email)
    return parse_qs(urlparse(url).query)["token"][0]


# --------------------------------------------------------------------------- #
# Sign-up / sign-in
# --------------------------------------------------------------------------- #


def test_sign_up_creates_user_and_session(auth, users, refresh_store, tokens):
    pair = auth.sign_up(
        SignUpIn(email="  New@X.com ", password="Str0ngPass", first_name="Neo", user_type="owner"), META
    )

    created = users.find_by_email("new@x.com")
    assert created is not None and created.user_type == "owner"
    assert created.password_hash != "Str0ngPass"
    claims = tokens.verify_access_token(pair.access_token)
    assert claims["sub"] == str(created.id)
    assert claims["roles"] == ["owner"]
    assert [r.ip for r in refresh_store.list_for_user(created.id)] == [META.ip]


def test_sign_up_rejects_taken_email_before_policy(auth, user):
    with pytest.raises(AlreadyRegisteredError):
        auth.sign_up(SignUpIn(email="A@x.com", password="weak"))


def test_sign_up_applies_password_policy(auth, users):
    with pytest.raises(WeakPasswordError) as exc:
        auth.sign_up(SignUpIn(email="b@x.com", password="password1"))
    assert exc.value.reason == "missing_uppercase"
    assert users.find_by_email("b@x.com") is None


def test_sign_in_issues_pair_for_valid_credentials(auth, user, tokens):
    pair = _sign_in(auth, email="A@X.COM")

    assert tokens.verify_refresh_token(pair.refresh_token)["email"] == EMAIL
    assert tokens.verify_access_token(pair.access_token)["sub"] == str(user.id)


def test_sign_in_failures_are_indistinguishable(auth, user):
    with pytest.raises(InvalidCredentialsError) as unknown:
        _sign_in(auth, email="nobody@x.com")
    with pytest.raises(InvalidCredentialsError) as wrong:
        _sign_in(auth, password="Secret2")

    assert str(unknown.value) == str(wrong.value)
    assert unknown.value.code == wrong.value.code == "invalid_credentials"


def test_sign_in_rejects_disabled_account(auth, users, user):
    users._by_id[user.id] = replace(user, is_active=False)

    with pytest.raises(InvalidCredentialsError):
        _sign_in(auth)


# --------------------------------------------------------------------------- #
# Refresh rotation
# --------------------------------------------------------------------------- #


def test_refresh_rotates_single_use_token(auth, user, sessions):
    first = _sign_in(auth)

    second = auth.refresh(user.id, first.refresh_token, META)

    assert second.refresh_token != first.refresh_token
    assert sessions.find_matching_token(user.id, first.refresh_token) is None
    assert sessions.find_matching_token(user.id, second.refresh_token) is not None


def test_refresh_twice_with_same_token_revokes_everything(auth, user, refresh_store):
    pair = _sign_in(auth)
    _sign_in(auth)
    auth.refresh(user.id, pair.refresh_token)

    with pytest.raises(RefreshTokenReuseDetectedError):
        auth.refresh(user.id, pair.refresh_token)

    assert refresh_store.list_for_user(user.id) == []


def test_max_one_session_rotation_and_reuse(capped_auth, user, refresh_store):
    s1 = _sign_in(capped_auth)
    s2 = _sign_in(capped_auth)
    assert len(refresh_store.list_for_user(user.id)) == 1

    s3 = capped_auth.refresh(user.id, s2.refresh_token)
    assert len(refresh_store.list_for_user(user.id)) == 1

    with pytest.raises(RefreshTokenReuseDetectedError):
        capped_auth.refresh(user.id, s2.refresh_token)
    assert refresh_store.list_for_user(user.id) == []

    with pytest.raises(RefreshTokenReuseDetectedError):
        capped_auth.refresh(user.id, s3.refresh_token)
    with pytest.raises(RefreshTokenReuseDetectedError):
        capped_auth.refresh(user.id, s1.refresh_token)


def test_refresh_with_expired_record_deletes_it(auth, user, sessions, tokens, refresh_store):
    raw = tokens.issue_refresh_token(user.id, user.email, user.roles)
    sessions.create(user.id, raw, expires_at=datetime.now(UTC) - timedelta(seconds=1))
    _sign_in(auth)

    with pytest.raises(RefreshTokenExpiredError):
        auth.refresh(user.id, raw)

    assert len(refresh_store.list_for_user(user.id)) == 1


def test_refresh_losing_concurrent_delete_counts_as_reuse(auth, user, sessions, refresh_store, monkeypatch):
    pair = _sign_in(auth)
    monkeypatch.setattr(sessions, "delete_by_id", lambda record_id: False)

    with pytest.raises(RefreshTokenReuseDetectedError):
        auth.refresh(user.id, pair.refresh_token)

    assert refresh_store.list_for_user(user.id) == []


def test_refresh_for_deleted_user_revokes_sessions(auth, user, users, refresh_store):
    pair = _sign_in(auth)
    _sign_in(auth)
    users.remove(user.id)

    with pytest.raises(UserNotFoundError):
        auth.refresh(user.id, pair.refresh_token)

    assert refresh_store.list_for_user(user.id) == []


def test_subject_from_refresh_token(auth, user, tokens):
    pair = _sign_in(auth)

    assert auth.subject_from_refresh_token(pair.refresh_token) == user.id
    with pytest.raises(InvalidRefreshTokenError):
        auth.subject_from_refresh_token(pair.access_token)
    with pytest.raises(InvalidRefreshTokenError):
        auth.subject_from_refresh_token("not-a-jwt")


def test_subject_from_expired_refresh_token(auth, user):
    with freeze_time("2025-05-01 09:00:00") as frozen:
        pair = _sign_in(auth)
        frozen.tick(timedelta(days=7, seconds=1))

        with pytest.raises(RefreshTokenExpiredError):
            auth.subject_from_refresh_token(pair.refresh_token)


@pytest.mark.parametrize("subject", ["abc", None, "-1"])
def test_coerce_user_id_rejects_non_numeric(subject):
    with pytest.raises(ValueError):
        AuthService._coerce_user_id(subject)


# --------------------------------------------------------------------------- #
# Logout
# --------------------------------------------------------------------------- #


def test_logout_drops_only_the_presented_session(auth, user, refresh_store):
    pair = _sign_in(auth)
    _sign_in(auth)

    assert auth.logout(pair.refresh_token) is True
    assert len(refresh_store.list_for_user(user.id)) == 1
    assert auth.logout(pair.refresh_token) is False


@pytest.mark.parametrize("token", [None, "", "garbage"])
def test_logout_ignores_unusable_tokens(auth, token):
    assert auth.logout(token) is False


def test_logout_all(auth, user, refresh_store):
    for _ in range(3):
        _sign_in(auth)

    assert auth.logout_all(user.id) == 3
    assert refresh_store.list_for_user(user.id) == []


# --------------------------------------------------------------------------- #
# Password change
# --------------------------------------------------------------------------- #


def test_change_password_updates_hash_and_revokes_sessions(auth, user, refresh_store):
    _sign_in(auth)
    _sign_in(auth)

    auth.change_password(ChangePasswordIn(user.id, PASSWORD, "N3wPassword"))

    assert refresh_store.list_for_user(user.id) == []
    with pytest.raises(InvalidCredentialsError):
        _sign_in(auth)
    _sign_in(auth, password="N3wPassword")


def test_change_password_rejects_same_password(auth, users, hasher):
    strong = users.create(NewUser(email="s@x.com", password_hash=hasher.hash("Str0ngPass")))

    with pytest.raises(PasswordUnchangedError):
        auth.change_password(ChangePasswordIn(strong.id, "Str0ngPass", "Str0ngPass"))


def test_change_password_checks_current_password_first(auth, user):
    with pytest.raises(InvalidCurrentPasswordError):
        auth.change_password(ChangePasswordIn(user.id, "nope", "weak"))


def test_change_password_applies_policy(auth, user):
    with pytest.raises(WeakPasswordError):
        auth.change_password(ChangePasswordIn(user.id, PASSWORD, "short"))


def test_change_password_unknown_user(auth):
    with pytest.raises(UserNotFoundError):
        auth.change_password(ChangePasswordIn(99, "a", "b"))


# --------------------------------------------------------------------------- #
# Password reset
# --------------------------------------------------------------------------- #


def test_forgot_password_for_unknown_email_is_silent(auth, notifier, ephemeral):
    auth.forgot_password("ghost@x.com")

    assert notifier.resets == {}
    assert ephemeral.ttl("password_reset:ghost@x.com") == -2


def test_forgot_password_sends_frontend_link(auth, user, notifier):
    auth.forgot_password(" A@X.com ")

    url = notifier.last_reset_url(EMAIL)
    assert url.startswith("http://frontend.test/reset-password?token=")


def test_forgot_password_survives_notifier_failure(auth, user, notifier, monkeypatch):
    def boom(email, reset_url):
        raise ConnectionError("smtp down")

    monkeypatch.setattr(notifier, "send_password_reset", boom)

    auth.forgot_password(EMAIL)

    assert auth.otp.get_reset_token_hash(EMAIL) is not None


def test_reset_password_succeeds_exactly_once(auth, user, notifier, refresh_store):
    _sign_in(auth)
    auth.forgot_password(EMAIL)
    token = _reset_token(notifier)

    auth.reset_password(ResetPasswordIn(token, "Br4ndNewPass"))

    assert refresh_store.list_for_user(user.id) == []
    _sign_in(auth, password="Br4ndNewPass")
    with pytest.raises(InvalidOrExpiredResetTokenError):
        auth.reset_password(ResetPasswordIn(token, "An0therPass"))


def test_reset_password_with_superseded_token(auth, user, notifier):
    auth.forgot_password(EMAIL)
    old = _reset_token(notifier)
    auth.forgot_password(EMAIL)
    new = _reset_token(notifier)

    assert auth.verify_reset_token(old) is False
    with pytest.raises(InvalidOrExpiredResetTokenError):
        auth.reset_password(ResetPasswordIn(old, "Br4ndNewPass"))
    auth.reset_password(ResetPasswordIn(new, "Br4ndNewPass"))


def test_reset_password_weak_password_keeps_token(auth, user, notifier):
    auth.forgot_password(EMAIL)
    token = _reset_token(notifier)

    with pytest.raises(WeakPasswordError):
        auth.reset_password(ResetPasswordIn(token, "weak"))
    assert auth.verify_reset_token(token) is True


def test_reset_token_expires_after_an_hour(auth, user, notifier):
    with freeze_time("2025-05-01 09:00:00") as frozen:
        auth.forgot_password(EMAIL)
        token = _reset_token(notifier)
        frozen.tick(timedelta(hours=1, seconds=1))

        assert auth.verify_reset_token(token) is False
        assert auth.get_reset_token_info(token) is None


def test_get_reset_token_info(auth, user, notifier):
    with freeze_time("2025-05-01 09:00:00"):
        auth.forgot_password(EMAIL)
        info = auth.get_reset_token_info(_reset_token(notifier))

    assert info.email == EMAIL
    assert info.expires_at == datetime(2025, 5, 1, 10, tzinfo=UTC)


def test_reset_token_rejects_other_token_families(auth, user):
    pair = _sign_in(auth)

    assert auth.verify_reset_token(pair.access_token) is False
    assert auth.verify_reset_token("") is False


# --------------------------------------------------------------------------- #
# Profile
# --------------------------------------------------------------------------- #


def test_get_profile(auth, user):
    profile = auth.get_profile(user.id)

    assert (profile.id, profile.email, profile.first_name) == (user.id, EMAIL, "Ann")
    assert not hasattr(profile, "password_hash")
    with pytest.raises(UserNotFoundError):
        auth.get_profile(user.id + 1)
