"""
RegistrationService
===================

E-mail verified self-registration:

- ``register_init`` stores a pending registration and mails an OTP.
- ``verify_email`` checks the OTP and hands out a short-lived completion token.
- ``complete_registration`` creates the account and opens a first session.
- ``resend_otp`` replaces the OTP of a pending registration.

State per email moves ``NONE → INIT → VERIFIED → COMPLETE`` and lives in the
ephemeral store until completion; abandoned flows simply expire.
"""

from __future__ import annotations

from datetime import timedelta

from equiprent.core.logger import log_event
from equiprent.services._shared.base import BaseService
from equiprent.services._shared.dto import RequestMeta
from equiprent.services._shared.errors import (
    AlreadyRegisteredError,
    AvatarRequiredError,
    InvalidOrExpiredOtpError,
    RegistrationDataNotFoundError,
    RegistrationSessionExpiredError,
)
from equiprent.services._shared.policies.common import normalize_email
from equiprent.services._shared.policies.password import ensure_strong_password
from equiprent.services._shared.ports import (
    FileStorage,
    NewUser,
    Notifier,
    PasswordHasher,
    TokenProvider,
    UserStore,
)
from equiprent.services._shared.ports.token_provider import TokenError
from equiprent.services.auth.dto import AuthSettings, ProfileOut
from equiprent.services.auth.service import AuthService
from equiprent.services.otp.service import OtpService
from equiprent.services.registration.dto import (
    CompleteRegistrationIn,
    EmailVerifiedOut,
    OtpSentOut,
    RegisterInitIn,
    RegistrationOut,
    VerifyEmailIn,
)

AVATAR_FOLDER = "avatars"


class RegistrationService(BaseService):
    """
    Orchestrates the OTP registration flow.

    :param users: Durable user store (email uniqueness, account creation).
    :param hasher: Password hasher (passwords are hashed at init).
    :param tokens: Issues and verifies completion tokens.
    :param otp: Ephemeral state keeper.
    :param files: Avatar storage.
    :param notifier: OTP delivery.
    :param auth: Opens the first session once the account exists.
    :param settings: Lifetimes.
    """

    def __init__(
        self,
        *,
        users: UserStore,
        hasher: PasswordHasher,
        tokens: TokenProvider,
        otp: OtpService,
        files: FileStorage,
        notifier: Notifier,
        auth: AuthService,
        settings: AuthSettings,
    ) -> None:
        super().__init__()
        self.users = users
        self.hasher = hasher
        self.tokens = tokens
        self.otp = otp
        self.files = files
        self.notifier = notifier
        self.auth = auth
        self.settings = settings

    def _send_otp(self, email: str, code: str) -> None:
        try:
            self.notifier.send_otp(email, code)
        except Exception:
            self.log.exception("Failed to deliver OTP to %s", email)

    def _otp_sent(self, email: str, message: str) -> OtpSentOut:
        expires_at = self.otp.otp_expires_at(email) or self.now_utc() + self.settings.otp_ttl
        return OtpSentOut(message=message, email=email, otp_expires_at=expires_at)

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    def register_init(self, dto: RegisterInitIn, meta: RequestMeta | None = None) -> OtpSentOut:
        """
        Start a registration and mail an OTP.

        Restarting an unfinished registration for the same email replaces the
        pending data and the code.

        :raises AlreadyRegisteredError: If an account already uses the email.
        :raises WeakPasswordError: If the password fails the policy.
        """
        email = normalize_email(dto.email)
        if self.users.find_by_email(email) is not None:
            raise AlreadyRegisteredError()
        ensure_strong_password(dto.password)

        code = self.otp.issue_otp(email)
        self.otp.save_pending(
            email,
            {
                "email": email,
                "password_hash": self.hasher.hash(dto.password),
                "first_name": dto.first_name,
                "meta": (meta or RequestMeta()).to_dict(),
            },
        )
        self._send_otp(email, code)
        log_event(self.log, "registration.init")
        return self._otp_sent(email, "Verification code sent")

    def verify_email(self, dto: VerifyEmailIn) -> EmailVerifiedOut:
        """
        Check the OTP and issue a completion token.

        A wrong code leaves the stored one untouched.

        :raises InvalidOrExpiredOtpError: No code stored or mismatch.
        :raises RegistrationSessionExpiredError: Pending data already expired.
        """
        email = normalize_email(dto.email)
        if not self.otp.matches_otp(email, dto.otp):
            raise InvalidOrExpiredOtpError()
        if not self.otp.has_pending(email):
            self.otp.clear_otp(email)
            raise RegistrationSessionExpiredError()

        self.otp.clear_otp(email)
        self.otp.mark_verified(email)
        token = self.tokens.issue_registration_token(email)
        log_event(self.log, "registration.verified")
        return EmailVerifiedOut(
            temp_token=token,
            expires_in=int(self.settings.registration_ttl / timedelta(seconds=1)),
        )

    def resend_otp(self, email: str) -> OtpSentOut:
        """
        Replace the OTP of a pending registration (pending TTL unchanged).

        :raises RegistrationSessionExpiredError: No pending registration.
        """
        email = normalize_email(email)
        if not self.otp.has_pending(email):
            raise RegistrationSessionExpiredError()
        self.otp.clear_otp(email)
        code = self.otp.issue_otp(email)
        self._send_otp(email, code)
        return self._otp_sent(email, "Verification code resent")

    def complete_registration(
        self, dto: CompleteRegistrationIn, meta: RequestMeta | None = None
    ) -> RegistrationOut:
        """
        Create the account and open its first session.

        Checks run in order: completion token, email still free, avatar present,
        pending data, avatar upload. Nothing is uploaded without pending data.

        :raises RegistrationSessionExpiredError: Token invalid, expired or for another email.
        :raises AlreadyRegisteredError: Email claimed meanwhile.
        :raises AvatarRequiredError: No avatar, or its upload failed.
        :raises RegistrationDataNotFoundError: Pending data expired.
        """
        email = normalize_email(dto.email)
        try:
            claims = self.tokens.verify_registration_token(dto.temp_token)
        except TokenError as exc:
            raise RegistrationSessionExpiredError() from exc
        if normalize_email(claims.get("email") or "") != email:
            raise RegistrationSessionExpiredError()

        if self.users.find_by_email(email) is not None:
            raise AlreadyRegisteredError()

        if dto.avatar is None or not dto.avatar.data:
            raise AvatarRequiredError()
        if not self.otp.has_pending(email):
            raise RegistrationDataNotFoundError()
        try:
            avatar_url = self.files.upload(dto.avatar, AVATAR_FOLDER)
        except OSError as exc:
            self.log.exception("Avatar upload failed for %s", email)
            raise AvatarRequiredError() from exc
        if not avatar_url:
            raise AvatarRequiredError()

        pending = self.otp.get_pending(email) or {}
        password_hash = pending.get("password_hash")
        if not password_hash:
            raise RegistrationDataNotFoundError()

        user = self.users.create(
            NewUser(
                email=email,
                password_hash=password_hash,
                first_name=pending.get("first_name"),
                last_name=dto.nickname,
                user_type=dto.user_type,
                phone=dto.phone,
                bio=dto.bio,
                avatar=avatar_url,
                is_verified=True,
            )
        )
        session_meta = meta if meta else RequestMeta.from_dict(pending.get("meta"))
        tokens = self.auth.open_session(user, session_meta)
        self.otp.clear_registration(email)
        log_event(self.log, "registration.complete", user_id=user.id)
        return RegistrationOut(tokens=tokens, user=ProfileOut.from_record(user))
