# equiprent/services/auth/service.py
from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from typing import Any, NoReturn
from urllib.parse import urlencode

from equiprent.core.logger import log_event
from equiprent.services._shared.base import BaseService
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
)
from equiprent.services._shared.policies.common import normalize_email
from equiprent.services._shared.policies.password import ensure_strong_password
from equiprent.services._shared.ports import (
    NewUser,
    Notifier,
    PasswordHasher,
    TokenProvider,
    UserRecord,
    UserStore,
)
from equiprent.services._shared.ports.token_provider import TokenError, TokenExpiredError
from equiprent.services.auth.dto import (
    AuthSettings,
    ChangePasswordIn,
    ProfileOut,
    ResetPasswordIn,
    ResetTokenInfoOut,
    SignInIn,
    SignUpIn,
    TokenPairOut,
)
from equiprent.services.otp.service import OtpService
from equiprent.services.sessions.service import RefreshSessionService

RESET_PASSWORD_PATH = "/reset-password"


class AuthService(BaseService):
    """
    Authentication lifecycle service.

    Covers sign-up / sign-in / refresh / logout and the password change and
    reset flows. Tokens come from a pluggable :class:`TokenProvider`; refresh
    sessions live in :class:`RefreshSessionService` (single-use rotation with
    reuse detection).
    """

    def __init__(
        self,
        *,
        users: UserStore,
        hasher: PasswordHasher,
        tokens: TokenProvider,
        sessions: RefreshSessionService,
        otp: OtpService,
        notifier: Notifier,
        settings: AuthSettings,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param users: Durable user store.
        :param hasher: Password / token-at-rest hasher.
        :param tokens: JWT issuer and verifier.
        :param sessions: Refresh session ledger.
        :param otp: Ephemeral state keeper (reset-token hashes).
        :param notifier: Out-of-band delivery of reset links.
        :param settings: Immutable auth configuration.
        """
        super().__init__()
        self.users = users
        self.hasher = hasher
        self.tokens = tokens
        self.sessions = sessions
        self.otp = otp
        self.notifier = notifier
        self.settings = settings
        self._dummy_hash: str | None = None

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _coerce_user_id(raw: Any) -> int:
        """
        Normalize a user identifier coming from token claims.

        :raises ValueError: If it cannot be parsed as int.
        """
        if isinstance(raw, int):
            return raw
        if isinstance(raw, str) and raw.isdigit():
            return int(raw)
        raise ValueError(f"Invalid user id in token subject: {raw!r}")

    def _burn_hash_comparison(self, password: str) -> None:
        # Unknown emails cost the same single comparison as a wrong password
        if self._dummy_hash is None:
            self._dummy_hash = self.hasher.hash(secrets.token_urlsafe(16))
        self.hasher.compare(password, self._dummy_hash)

    def _notify(self, send: Callable[[], None], what: str, email: str) -> None:
        """Fire-and-forget delivery: failures are logged, never raised."""
        try:
            send()
        except Exception:
            self.log.exception("Failed to deliver %s to %s", what, email)

    def open_session(self, user: UserRecord, meta: RequestMeta | None = None) -> TokenPairOut:
        """
        Issue a token pair, persist its refresh session and apply the session cap.

        Shared by sign-up, sign-in, refresh and registration completion.
        """
        access = self.tokens.issue_access_token(user.id, user.email, user.roles)
        refresh = self.tokens.issue_refresh_token(user.id, user.email, user.roles)
        self.sessions.create(user.id, refresh, meta=meta)
        self.sessions.enforce_max_sessions(user.id)
        return TokenPairOut(access_token=access, refresh_token=refresh)

    # ------------------------------------------------------------------ #
    # Sign-up / sign-in
    # ------------------------------------------------------------------ #

    def sign_up(self, dto: SignUpIn, meta: RequestMeta | None = None) -> TokenPairOut:
        """
        Create an account directly (no e-mail verification) and sign it in.

        :raises AlreadyRegisteredError: If the email is taken.
        :raises WeakPasswordError: If the password fails the policy.
        """
        email = normalize_email(dto.email)
        if self.users.find_by_email(email) is not None:
            raise AlreadyRegisteredError()
        ensure_strong_password(dto.password)

        user = self.users.create(
            NewUser(
                email=email,
                password_hash=self.hasher.hash(dto.password),
                first_name=dto.first_name,
                last_name=dto.last_name,
                user_type=dto.user_type,
                phone=dto.phone,
            )
        )
        log_event(self.log, "auth.sign_up", user_id=user.id)
        return self.open_session(user, meta)

    def sign_in(self, dto: SignInIn, meta: RequestMeta | None = None) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :raises InvalidCredentialsError: Unknown email, wrong password or
            disabled account (indistinguishable to the caller).
        """
        user = self.users.find_by_email(normalize_email(dto.email))
        if user is None:
            self._burn_hash_comparison(dto.password)
            raise InvalidCredentialsError()
        if not self.hasher.compare(dto.password, user.password_hash) or not user.is_active:
            log_event(self.log, "auth.sign_in_failed", user_id=user.id)
            raise InvalidCredentialsError()

        pair = self.open_session(user, meta)
        log_event(self.log, "auth.sign_in", user_id=user.id, ip=meta.ip if meta else None)
        return pair

    # ------------------------------------------------------------------ #
    # Refresh with single-use rotation
    # ------------------------------------------------------------------ #

    def subject_from_refresh_token(self, refresh_token: str) -> int:
        """
        Verify a presented refresh token and return its subject id.

        :raises RefreshTokenExpiredError: Signature valid but token expired.
        :raises InvalidRefreshTokenError: Anything else wrong with the token.
        """
        try:
            payload = self.tokens.verify_refresh_token(refresh_token)
            return self._coerce_user_id(payload.get("sub"))
        except TokenExpiredError as exc:
            raise RefreshTokenExpiredError() from exc
        except (TokenError, ValueError) as exc:
            raise InvalidRefreshTokenError() from exc

    def refresh(
        self, subject_id: int | str, refresh_token: str, meta: RequestMeta | None = None
    ) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        Security
        --------
        - The presented token must match a stored session, which is deleted
          before the replacement is issued (single use).
        - No match means the token was already consumed or belongs to a revoked
          chain: **every** session of the user is revoked.
        - A matched but expired session is deleted and rejected.

        :raises RefreshTokenReuseDetectedError: No live session matched.
        :raises RefreshTokenExpiredError: The matched session had expired.
        :raises UserNotFoundError: The account vanished meanwhile.
        """
        user_id = self._coerce_user_id(subject_id)
        record = self.sessions.find_matching_token(user_id, refresh_token)
        if record is None:
            self._revoke_for_reuse(user_id)

        if record.expires_at <= self.now_utc():
            self.sessions.delete_by_id(record.id)
            log_event(self.log, "auth.refresh_expired", user_id=user_id)
            raise RefreshTokenExpiredError()

        # Consume first; losing a concurrent race on the same token is reuse too
        if not self.sessions.delete_by_id(record.id):
            self._revoke_for_reuse(user_id)

        user = self.users.find_by_id(user_id)
        if user is None:
            self.sessions.delete_all_by_user(user_id)
            raise UserNotFoundError(key=user_id)

        return self.open_session(user, meta)

    def _revoke_for_reuse(self, user_id: int) -> NoReturn:
        revoked = self.sessions.delete_all_by_user(user_id)
        log_event(
            self.log, "auth.refresh_reuse", level=logging.WARNING, user_id=user_id, sessions=revoked
        )
        raise RefreshTokenReuseDetectedError()

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, refresh_token: str | None) -> bool:
        """
        Best-effort logout: drop the session matching ``refresh_token``.

        Invalid or unknown tokens are ignored.

        :returns: ``True`` if a session was deleted.
        """
        if not refresh_token:
            return False
        try:
            payload = self.tokens.verify_refresh_token(refresh_token)
            user_id = self._coerce_user_id(payload.get("sub"))
        except (TokenError, ValueError):
            self.log.debug("Logout with unverifiable refresh token ignored")
            return False

        record = self.sessions.find_matching_token(user_id, refresh_token)
        if record is None:
            return False
        deleted = self.sessions.delete_by_id(record.id)
        log_event(self.log, "auth.logout", user_id=user_id)
        return deleted

    def logout_all(self, user_id: int) -> int:
        """Revoke every session of ``user_id``. :returns: Sessions revoked."""
        revoked = self.sessions.delete_all_by_user(int(user_id))
        log_event(self.log, "auth.logout_all", user_id=int(user_id), sessions=revoked)
        return revoked

    # ------------------------------------------------------------------ #
    # Password change / reset
    # ------------------------------------------------------------------ #

    def change_password(self, dto: ChangePasswordIn) -> None:
        """
        Replace the password of an authenticated user and revoke all sessions.

        :raises UserNotFoundError: Unknown user.
        :raises InvalidCurrentPasswordError: ``current_password`` mismatch.
        :raises WeakPasswordError: ``new_password`` fails the policy.
        :raises PasswordUnchangedError: ``new_password`` equals the current one.
        """
        user = self.users.find_by_id(dto.user_id)
        if user is None:
            raise UserNotFoundError(key=dto.user_id)
        if not self.hasher.compare(dto.current_password, user.password_hash):
            raise InvalidCurrentPasswordError()
        ensure_strong_password(dto.new_password)
        if self.hasher.compare(dto.new_password, user.password_hash):
            raise PasswordUnchangedError()

        self.users.update_password(user.id, self.hasher.hash(dto.new_password))
        revoked = self.sessions.delete_all_by_user(user.id)
        log_event(self.log, "auth.password_changed", user_id=user.id, sessions=revoked)

    def forgot_password(self, email: str) -> None:
        """
        Send a reset link when ``email`` belongs to an account.

        Unknown emails are a silent no-op so callers cannot probe accounts.
        Issuing a new link invalidates the previous one.
        """
        email = normalize_email(email)
        user = self.users.find_by_email(email)
        if user is None:
            self.log.info("Password reset requested for unknown email")
            return

        token = self.tokens.issue_password_reset_token(user.id, user.email)
        self.otp.store_reset_token_hash(user.email, self.hasher.hash(token))
        reset_url = (
            f"{self.settings.frontend_url}{RESET_PASSWORD_PATH}?{urlencode({'token': token})}"
        )
        self._notify(
            lambda: self.notifier.send_password_reset(user.email, reset_url),
            "password reset link",
            user.email,
        )
        log_event(self.log, "auth.password_reset_requested", user_id=user.id)

    def _check_reset_token(self, token: str) -> dict[str, Any]:
        """
        Signature, purpose and stored-hash check of a reset token.

        :raises InvalidOrExpiredResetTokenError: On any failure.
        """
        try:
            payload = self.tokens.verify_password_reset_token(token)
        except TokenError as exc:
            raise InvalidOrExpiredResetTokenError() from exc

        email = normalize_email(payload.get("email") or "")
        stored = self.otp.get_reset_token_hash(email) if email else None
        if not stored or not self.hasher.compare(token, stored):
            raise InvalidOrExpiredResetTokenError()
        return payload

    def reset_password(self, dto: ResetPasswordIn) -> None:
        """
        Complete a reset: set the new password, burn the token, revoke sessions.

        :raises InvalidOrExpiredResetTokenError: Token invalid, expired, superseded or used.
        :raises WeakPasswordError: ``new_password`` fails the policy.
        """
        try:
            payload = self._check_reset_token(dto.token)
        except InvalidOrExpiredResetTokenError:
            log_event(self.log, "auth.reset_rejected", level=logging.WARNING)
            raise
        ensure_strong_password(dto.new_password)

        email = normalize_email(payload["email"])
        user = self.users.find_by_email(email)
        if user is None:
            self.otp.clear_reset_token(email)
            raise InvalidOrExpiredResetTokenError()

        self.users.update_password(user.id, self.hasher.hash(dto.new_password))
        self.otp.clear_reset_token(email)
        revoked = self.sessions.delete_all_by_user(user.id)
        log_event(self.log, "auth.password_reset", user_id=user.id, sessions=revoked)

    def verify_reset_token(self, token: str) -> bool:
        """Return ``True`` when ``token`` would currently be accepted by :meth:`reset_password`."""
        try:
            self._check_reset_token(token)
        except InvalidOrExpiredResetTokenError:
            return False
        return True

    def get_reset_token_info(self, token: str) -> ResetTokenInfoOut | None:
        """Return the email and expiry of a still-valid reset token, else ``None``."""
        try:
            payload = self._check_reset_token(token)
        except InvalidOrExpiredResetTokenError:
            return None
        return ResetTokenInfoOut(
            email=normalize_email(payload["email"]),
            expires_at=self.tokens.get_expires_at(token),
        )

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def get_profile(self, user_id: int) -> ProfileOut:
        """:raises UserNotFoundError: Unknown user."""
        user = self.users.find_by_id(int(user_id))
        if user is None:
            raise UserNotFoundError(key=user_id)
        return ProfileOut.from_record(user)
