# equiprent/infra/jwt/pyjwt_token_provider.py
from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from equiprent.services._shared.ports import TokenProvider
from equiprent.services._shared.ports.token_provider import (
    ACCESS_TOKEN_TYPE,
    EMAIL_VERIFIED_STAGE,
    PASSWORD_RESET_PURPOSE,
    REFRESH_TOKEN_TYPE,
    InvalidTokenError,
    TokenExpiredError,
    TokenPurposeMismatchError,
)
from equiprent.services.auth.dto import AuthSettings


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    HMAC JWT adapter built on PyJWT.

    :param settings: Secrets and lifetimes of the four token families.

    .. note::
       Every token carries a random ``jti`` so two tokens issued for the same
       subject within the same second never collide (the refresh ledger
       matches tokens by hash).
    """

    settings: AuthSettings

    # -------------------- helpers --------------------

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def _encode(self, claims: dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = self._now()
        payload = {
            **claims,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, secret, algorithm=self.settings.algorithm)

    @staticmethod
    def _expect(payload: dict[str, Any], claim: str, value: str) -> dict[str, Any]:
        if payload.get(claim) != value:
            raise TokenPurposeMismatchError(f"Expected {claim}={value!r}")
        return payload

    def _session_claims(
        self, subject_id: int | str, email: str, roles: Iterable[str], token_type: str
    ) -> dict[str, Any]:
        return {
            "sub": str(subject_id),
            "email": email,
            "roles": list(roles),
            "type": token_type,
        }

    # -------------------- access / refresh ------------------------

    def issue_access_token(self, subject_id: int | str, email: str, roles: Iterable[str]) -> str:
        claims = self._session_claims(subject_id, email, roles, ACCESS_TOKEN_TYPE)
        return self._encode(claims, self.settings.access_secret, self.settings.access_ttl)

    def issue_refresh_token(self, subject_id: int | str, email: str, roles: Iterable[str]) -> str:
        claims = self._session_claims(subject_id, email, roles, REFRESH_TOKEN_TYPE)
        return self._encode(claims, self.settings.refresh_secret, self.settings.refresh_ttl)

    def verify(self, token: str, secret: str) -> dict[str, Any]:
        """
        Check signature and expiry against ``secret``.

        :raises TokenExpiredError: Signature ok but ``exp`` passed.
        :raises InvalidTokenError: Malformed token or bad signature.
        """
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self.settings.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError(str(exc)) from exc
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(str(exc)) from exc

    def verify_access_token(self, token: str) -> dict[str, Any]:
        payload = self.verify(token, self.settings.access_secret)
        return self._expect(payload, "type", ACCESS_TOKEN_TYPE)

    def verify_refresh_token(self, token: str) -> dict[str, Any]:
        payload = self.verify(token, self.settings.refresh_secret)
        return self._expect(payload, "type", REFRESH_TOKEN_TYPE)

    def decode_unsafe(self, token: str) -> dict[str, Any]:
        """Read claims without checking signature or expiry (never trust the result)."""
        try:
            return jwt.decode(
                token,
                options={"verify_signature": False, "verify_exp": False},
                algorithms=[self.settings.algorithm],
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(str(exc)) from exc

    # -------------------- password reset ------------------------

    def issue_password_reset_token(self, subject_id: int | str, email: str) -> str:
        claims = {"sub": str(subject_id), "email": email, "purpose": PASSWORD_RESET_PURPOSE}
        return self._encode(claims, self.settings.reset_secret, self.settings.reset_ttl)

    def verify_password_reset_token(self, token: str) -> dict[str, Any]:
        payload = self.verify(token, self.settings.reset_secret)
        return self._expect(payload, "purpose", PASSWORD_RESET_PURPOSE)

    # -------------------- registration completion ------------------------

    def issue_registration_token(self, email: str) -> str:
        claims = {"email": email, "stage": EMAIL_VERIFIED_STAGE}
        return self._encode(
            claims, self.settings.registration_secret, self.settings.registration_ttl
        )

    def verify_registration_token(self, token: str) -> dict[str, Any]:
        payload = self.verify(token, self.settings.registration_secret)
        return self._expect(payload, "stage", EMAIL_VERIFIED_STAGE)

    # -------------------- misc ------------------------

    def get_expires_at(self, token: str) -> datetime | None:
        exp = self.decode_unsafe(token).get("exp")
        if exp is None:
            return None
        return datetime.fromtimestamp(int(exp), tz=UTC)
