"""
Service Result Types

Every service operation returns a ``ServiceResult`` instead of raising.
Callers branch on ``ok`` and, when it is False, on ``error_code``.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Failure kinds shared by all services."""
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    NOT_OWNER = "not_owner"
    NOT_ALLOWED = "not_allowed"
    WRONG_PASSWORD = "wrong_password"
    INVALID_TOKEN = "invalid_token"
    INFRASTRUCTURE_FAILURE = "infrastructure_failure"


@dataclass
class ServiceResult(Generic[T]):
    """
    Standardized result from a service operation.

    Attributes:
        ok: Whether the operation succeeded
        value: Payload on success (entity, page, token...)
        error: Human readable failure message
        error_code: Machine-readable failure kind
    """
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "ServiceResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error_code: ErrorCode, error: str) -> "ServiceResult[T]":
        return cls(ok=False, error=error, error_code=error_code)

    def to_dict(self) -> dict:
        """Envelope fields shared by every response."""
        return {
            "ok": self.ok,
            "error": self.error,
            "error_code": self.error_code.value if self.error_code else None,
        }


@dataclass
class Page(Generic[T]):
    """One page of a listing."""
    results: list[T] = field(default_factory=list)
    total_results: int = 0
    page_size: int = 1

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_results / self.page_size)
