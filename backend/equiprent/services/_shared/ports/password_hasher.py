from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """
    Port for one-way, salted password hashing.

    Implementations MUST be cost-parameterized and MUST compare in constant
    time. :meth:`compare` never raises: a malformed or empty hash simply does
    not match.
    """

    def hash(self, secret: str) -> str:
        """Return a self-describing hash (algorithm, cost and salt embedded)."""

    def compare(self, secret: str, hashed: str) -> bool:
        """Return ``True`` when ``secret`` produces ``hashed``."""
