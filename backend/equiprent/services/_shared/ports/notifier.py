from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


class Notifier(Protocol):
    """
    Outbound user notifications (e-mail in production).

    Delivery is fire-and-forget: callers never wait on nor fail because of it.
    """

    def send_otp(self, email: str, otp: str) -> None: ...

    def send_password_reset(self, email: str, reset_url: str) -> None: ...


@dataclass
class InMemoryNotifier(Notifier):
    """Records every notification so tests can read OTP codes and reset links."""

    otps: dict[str, list[str]] = field(default_factory=dict)
    resets: dict[str, list[str]] = field(default_factory=dict)

    def send_otp(self, email: str, otp: str) -> None:
        self.otps.setdefault(email, []).append(otp)

    def send_password_reset(self, email: str, reset_url: str) -> None:
        self.resets.setdefault(email, []).append(reset_url)

    def last_otp(self, email: str) -> str | None:
        sent = self.otps.get(email)
        return sent[-1] if sent else None

    def last_reset_url(self, email: str) -> str | None:
        sent = self.resets.get(email)
        return sent[-1] if sent else None
