# equiprent/infra/security/werkzeug_hasher.py
from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from equiprent.services._shared.ports import PasswordHasher

DEFAULT_METHOD = "scrypt"


@dataclass(frozen=True, slots=True)
class WerkzeugPasswordHasher(PasswordHasher):
    """
    Adapter over :mod:`werkzeug.security`.

    :param method: Werkzeug method string, cost included
        (``"scrypt"``, ``"pbkdf2:sha256:600000"``...).
    :param salt_length: Salt length in characters.

    .. note::
       Hashes are self-describing (``method$salt$hash``), so changing
       ``method`` never invalidates existing hashes.
    """

    method: str = DEFAULT_METHOD
    salt_length: int = 16

    def hash(self, secret: str) -> str:
        return generate_password_hash(secret, method=self.method, salt_length=self.salt_length)

    def compare(self, secret: str, hashed: str) -> bool:
        if not hashed or secret is None:
            return False
        try:
            return check_password_hash(hashed, secret)
        except (ValueError, TypeError):
            # Unknown method or truncated hash
            return False
