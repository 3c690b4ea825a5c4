"""
Credential helpers: password hashing and session tokens.
"""

from functools import lru_cache
from typing import Any

from jose import jwt, JWTError
from passlib.context import CryptContext

from eats.core.config import get_settings

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


class InvalidTokenError(Exception):
    """Raised when a token is malformed or signed with another key."""


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return pwd_context.verify(password, hashed_password)


class TokenService:
    """Signs and verifies session tokens with a shared private key."""

    def __init__(self, private_key: str, algorithm: str = "HS256"):
        self.private_key = private_key
        self.algorithm = algorithm

    def sign(self, payload: dict[str, Any]) -> str:
        # No expiry claim: tokens stay valid until the key rotates.
        return jwt.encode(payload, self.private_key, algorithm=self.algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(token, self.private_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidTokenError(str(e)) from e


@lru_cache()
def get_token_service() -> TokenService:
    settings = get_settings()
    return TokenService(settings.jwt_private_key, settings.jwt_algorithm)
