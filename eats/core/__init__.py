"""
Core module initialization.
Exports configuration, result types and credential utilities.
"""

from eats.core.config import get_settings, Settings, EnvironmentMode
from eats.core.results import ErrorCode, Page, ServiceResult
from eats.core.security import InvalidTokenError, TokenService, get_token_service

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "ErrorCode",
    "Page",
    "ServiceResult",
    "InvalidTokenError",
    "TokenService",
    "get_token_service",
]
