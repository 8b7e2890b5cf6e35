from __future__ import annotations

import pytest

from garage_auth.core.security import PasswordHasher


@pytest.mark.parametrize("password", ["s3cret!", "", "contraseña-ñandú", "密码🔑", " spaced "])
def test_hash_round_trip(hasher, password):
    digest = hasher.hash(password)

    assert digest.startswith("argon2$")
    if password:
        assert password not in digest
    assert hasher.verify(password, digest) is True


def test_verify_rejects_other_password(hasher):
    digest = hasher.hash("correct horse")

    assert hasher.verify("correct horse ", digest) is False
    assert hasher.verify("Correct horse", digest) is False
    assert hasher.verify("", digest) is False


def test_hash_is_salted(hasher):
    assert hasher.hash("same") != hasher.hash("same")


@pytest.mark.parametrize("digest", [None, "", "plain-text", "argon2$", "argon2$not-a-real-hash", "$2b$12$abcdefghijklmnopqrstuv"])
def test_verify_returns_false_for_malformed_digest(hasher, digest):
    assert hasher.verify("whatever", digest) is False


def test_default_parameters_produce_verifiable_hash():
    default = PasswordHasher()
    digest = default.hash("pw")
    assert default.verify("pw", digest)
