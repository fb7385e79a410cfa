"""Password strength policy shared by sign-up, registration, change and reset."""

from __future__ import annotations

from equiprent.services._shared.errors import WeakPasswordError

MIN_LENGTH = 8

COMMON_PASSWORDS: frozenset[str] = frozenset(
    {
        "password",
        "12345678",
        "qwerty",
        "admin123",
        "password123",
        "letmein",
        "welcome",
        "monkey",
        "sunshine",
        "iloveyou",
    }
)


def password_violation(password: str) -> str | None:
    """
    Return the first policy violation of ``password``, or ``None``.

    Checks run in a fixed order so the reported reason is deterministic:
    ``too_short``, ``missing_uppercase``, ``missing_lowercase``,
    ``missing_digit``, ``too_common``.

    :param password: Candidate password (raw).
    :rtype: str | None
    """
    if len(password) < MIN_LENGTH:
        return "too_short"
    if not any(c.isupper() for c in password):
        return "missing_uppercase"
    if not any(c.islower() for c in password):
        return "missing_lowercase"
    if not any(c.isdigit() for c in password):
        return "missing_digit"
    if password.lower() in COMMON_PASSWORDS:
        return "too_common"
    return None


def ensure_strong_password(password: str) -> None:
    """
    Enforce the password policy.

    :raises WeakPasswordError: With the violated rule as ``reason``.
    """
    reason = password_violation(password)
    if reason is not None:
        raise WeakPasswordError(reason)
