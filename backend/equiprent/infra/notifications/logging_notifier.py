# equiprent/infra/notifications/logging_notifier.py
from __future__ import annotations

import logging

from equiprent.services._shared.ports import Notifier

log = logging.getLogger(__name__)


class LoggingNotifier(Notifier):
    """
    Development notifier: writes OTP codes and reset links to the log.

    .. warning::
       Secrets end up in logs. Replace with a real mail adapter in production.
    """

    def send_otp(self, email: str, otp: str) -> None:
        log.info("OTP for %s: %s", email, otp)

    def send_password_reset(self, email: str, reset_url: str) -> None:
        log.info("Password reset link for %s: %s", email, reset_url)
