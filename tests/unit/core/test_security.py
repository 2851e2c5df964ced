"""Unit tests for password hashing and access tokens."""

from datetime import timedelta

import pytest

from mintmarket.core.exceptions import AuthenticationError
from mintmarket.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from mintmarket.core.settings import SecuritySettings


def test_hash_password_is_salted():
    first, first_salt = hash_password("secret1")
    second, second_salt = hash_password("secret1")

    assert first_salt != second_salt
    assert first != second
    assert verify_password("secret1", first, first_salt)
    assert not verify_password("secret2", first, first_salt)


def test_token_round_trip():
    token = create_access_token("665f1c2e9b1e8a3d4c5b6a78")

    assert decode_access_token(token) == "665f1c2e9b1e8a3d4c5b6a78"


def test_expired_token_is_rejected():
    token = create_access_token("user", expires_delta=timedelta(seconds=-1))

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_token_signed_with_other_key_is_rejected():
    other = SecuritySettings(secret_key="another-secret-key")
    token = create_access_token("user", security=other)

    with pytest.raises(AuthenticationError):
        decode_access_token(token)


def test_garbage_token_is_rejected():
    with pytest.raises(AuthenticationError):
        decode_access_token("not-a-token")
