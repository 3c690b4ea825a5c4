import pytest

from eats.core.security import (
    InvalidTokenError,
    TokenService,
    hash_password,
    verify_password,
)
from eats.models import User, UserRole


def test_token_round_trip(tokens):
    token = tokens.sign({"id": 7})
    assert tokens.verify(token)["id"] == 7


def test_token_signed_with_other_key_is_rejected(tokens):
    forged = TokenService("someone-else").sign({"id": 7})
    with pytest.raises(InvalidTokenError):
        tokens.verify(forged)


def test_garbage_token_is_rejected(tokens):
    with pytest.raises(InvalidTokenError):
        tokens.verify("not-a-token")


def test_password_hashing():
    hashed = hash_password("12345")
    assert hashed != "12345"
    assert verify_password("12345", hashed)
    assert not verify_password("54321", hashed)


def test_user_password_is_hashed_on_assignment():
    user = User(email="client@eats.io", password="12345", role=UserRole.CLIENT)
    assert user.password != "12345"
    assert user.check_password("12345")

    user.password = "new-password"
    assert user.check_password("new-password")
    assert not user.check_password("12345")
