"""
OtpService
==========

Key-prefixed ephemeral state for e-mail verification and password reset.

Every key is ``<prefix><normalized email>``:

- ``otp:``            6-digit verification code (10 min)
- ``reg:``            pending registration JSON (15 min)
- ``verified:``       e-mail verified marker (15 min)
- ``password_reset:`` hash of the last reset token issued (1 h)

Operations on different keys are not atomic as a group; every key expires
on its own, so a crash between two calls self-heals once TTLs run out.
"""

from __future__ import annotations

import hmac
import json
import secrets
from datetime import datetime, timedelta
from typing import Any

from equiprent.services._shared.base import BaseService
from equiprent.services._shared.ports import EphemeralStore
from equiprent.services.auth.dto import AuthSettings

OTP_PREFIX = "otp:"
PENDING_PREFIX = "reg:"
VERIFIED_PREFIX = "verified:"
RESET_PREFIX = "password_reset:"

OTP_DIGITS = 6


def _seconds(delta: timedelta) -> int:
    return max(1, int(delta.total_seconds()))


class OtpService(BaseService):
    """
    Ephemeral state keeper for the registration and reset flows.

    :param store: TTL'd key/value store.
    :param settings: Lifetimes of each concern.
    """

    def __init__(self, *, store: EphemeralStore, settings: AuthSettings) -> None:
        super().__init__()
        self.store = store
        self.settings = settings

    # ------------------------------------------------------------------ #
    # OTP codes
    # ------------------------------------------------------------------ #

    @staticmethod
    def generate_otp() -> str:
        """Return a uniformly random 6-digit numeric code."""
        return f"{secrets.randbelow(10**OTP_DIGITS):0{OTP_DIGITS}d}"

    def issue_otp(self, email: str) -> str:
        """Generate, store (replacing any previous one) and return a new code."""
        code = self.generate_otp()
        self.store.set(OTP_PREFIX + email, code, _seconds(self.settings.otp_ttl))
        return code

    def matches_otp(self, email: str, code: str) -> bool:
        """
        Compare ``code`` with the stored one without consuming it.

        :returns: ``False`` when nothing is stored or the codes differ.
        """
        stored = self.store.get(OTP_PREFIX + email)
        if stored is None or not isinstance(code, str):
            return False
        return hmac.compare_digest(stored.encode(), code.encode())

    def clear_otp(self, email: str) -> None:
        self.store.delete(OTP_PREFIX + email)

    def otp_expires_at(self, email: str) -> datetime | None:
        """When the stored code expires, read from the store's remaining TTL."""
        remaining = self.store.ttl(OTP_PREFIX + email)
        if remaining < 0:
            return None
        return self.now_utc() + timedelta(seconds=remaining)

    # ------------------------------------------------------------------ #
    # Pending registration
    # ------------------------------------------------------------------ #

    def save_pending(self, email: str, data: dict[str, Any]) -> None:
        self.store.set(
            PENDING_PREFIX + email,
            json.dumps(data),
            _seconds(self.settings.pending_registration_ttl),
        )

    def get_pending(self, email: str) -> dict[str, Any] | None:
        raw = self.store.get(PENDING_PREFIX + email)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            self.log.warning("Discarding unreadable pending registration for %s", email)
            self.store.delete(PENDING_PREFIX + email)
            return None
        return data if isinstance(data, dict) else None

    def has_pending(self, email: str) -> bool:
        return self.store.exists(PENDING_PREFIX + email)

    # ------------------------------------------------------------------ #
    # Verified marker
    # ------------------------------------------------------------------ #

    def mark_verified(self, email: str) -> None:
        self.store.set(VERIFIED_PREFIX + email, "true", _seconds(self.settings.verified_marker_ttl))

    def is_verified(self, email: str) -> bool:
        return self.store.get(VERIFIED_PREFIX + email) == "true"

    def clear_registration(self, email: str) -> None:
        """Drop every registration key (pending data, marker, code) for ``email``."""
        self.store.delete_many([PENDING_PREFIX + email, VERIFIED_PREFIX + email, OTP_PREFIX + email])

    # ------------------------------------------------------------------ #
    # Password reset
    # ------------------------------------------------------------------ #

    def store_reset_token_hash(self, email: str, token_hash: str) -> None:
        """Remember the hash of the latest reset token (older ones stop working)."""
        self.store.set(RESET_PREFIX + email, token_hash, _seconds(self.settings.reset_ttl))

    def get_reset_token_hash(self, email: str) -> str | None:
        return self.store.get(RESET_PREFIX + email)

    def clear_reset_token(self, email: str) -> None:
        self.store.delete(RESET_PREFIX + email)
