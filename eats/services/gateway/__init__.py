"""
Payment Gateway Factory

The rest of the application asks for "the gateway" and never names a
provider:

    - ENV_MODE=development → MockPaymentGateway (no API calls)
    - ENV_MODE=staging → StripePaymentGateway (test keys)
    - ENV_MODE=production → StripePaymentGateway (live keys)
"""

import logging
from functools import lru_cache

from eats.core.config import get_settings
from eats.services.gateway.base import BasePaymentGateway, TransactionResult
from eats.services.gateway.mock import MockPaymentGateway
from eats.services.gateway.stripe_gateway import StripePaymentGateway

logger = logging.getLogger(__name__)


@lru_cache()
def get_payment_gateway() -> BasePaymentGateway:
    """
    Gateway instance shared by the whole process.

    Raises:
        ValueError: Outside development when STRIPE_SECRET_KEY is unset
    """
    settings = get_settings()
    gateway = MockPaymentGateway() if settings.is_development else StripePaymentGateway()
    logger.info(f"Payment gateway: {gateway.provider_name} ({settings.env_mode.value})")
    return gateway


def reset_payment_gateway() -> None:
    """Forget the cached gateway so the next lookup re-reads settings."""
    get_payment_gateway.cache_clear()


__all__ = [
    "get_payment_gateway",
    "reset_payment_gateway",
    "BasePaymentGateway",
    "TransactionResult",
    "MockPaymentGateway",
    "StripePaymentGateway",
]
