from __future__ import annotations

import pytest


@pytest.mark.parametrize("secret", ["Secret1", "correct horse battery staple", "ünïcødé-Pa55"])
def test_compare_accepts_own_hash_and_rejects_others(hasher, secret):
    hashed = hasher.hash(secret)

    assert hashed != secret
    assert hasher.compare(secret, hashed) is True
    assert hasher.compare(secret + "x", hashed) is False


def test_hash_is_salted(hasher):
    assert hasher.hash("Secret1") != hasher.hash("Secret1")


def test_hash_carries_configured_method(hasher):
    assert hasher.hash("Secret1").startswith("pbkdf2:sha256:1000$")


@pytest.mark.parametrize("broken", ["", "not-a-hash", "unknown$salt$digest", "pbkdf2:sha256"])
def test_compare_never_raises_on_malformed_hash(hasher, broken):
    assert hasher.compare("Secret1", broken) is False
