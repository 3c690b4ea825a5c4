"""
Stripe Payment Gateway

Owners pay for a promotion through Stripe checkout on the client; the
backend receives the PaymentIntent id and accepts it only once Stripe
reports the intent as ``succeeded``.

Active when ENV_MODE is staging or production; needs STRIPE_SECRET_KEY.
"""

import asyncio
import logging
from typing import Optional

import stripe
from stripe import AuthenticationError, InvalidRequestError, StripeError

from eats.core.config import get_settings
from eats.services.gateway.base import BasePaymentGateway, TransactionResult

logger = logging.getLogger(__name__)

STRIPE_API_VERSION = "2023-10-16"
SETTLED = "succeeded"


class StripePaymentGateway(BasePaymentGateway):

    def __init__(self, api_key: Optional[str] = None):
        api_key = api_key or get_settings().stripe_secret_key
        if not api_key:
            raise ValueError("STRIPE_SECRET_KEY must be set outside development mode")

        stripe.api_key = api_key
        stripe.api_version = STRIPE_API_VERSION
        logger.info(f"StripePaymentGateway ready (api_version={STRIPE_API_VERSION})")

    @property
    def provider_name(self) -> str:
        return "stripe"

    async def verify_transaction(self, transaction_id: str) -> TransactionResult:
        # The SDK is blocking; keep it off the event loop
        try:
            intent = await asyncio.to_thread(stripe.PaymentIntent.retrieve, transaction_id)
        except InvalidRequestError as e:
            logger.warning(f"Stripe does not know transaction {transaction_id}: {e}")
            return TransactionResult(
                success=False,
                transaction_id=transaction_id,
                error_message="Unknown transaction.",
            )
        except StripeError as e:
            logger.error(f"Stripe lookup of {transaction_id} failed: {e}")
            return TransactionResult(
                success=False,
                transaction_id=transaction_id,
                error_message=str(e),
            )

        if intent.status != SETTLED:
            logger.info(f"Transaction {intent.id} is {intent.status}, not settled")
            return TransactionResult(
                success=False,
                transaction_id=intent.id,
                status=intent.status,
                error_message="Transaction was not completed.",
            )

        cents = intent.amount_received or intent.amount
        return TransactionResult(
            success=True,
            transaction_id=intent.id,
            amount=cents / 100,
            currency=intent.currency,
            status=intent.status,
        )

    async def health_check(self) -> bool:
        try:
            await asyncio.to_thread(stripe.Account.retrieve)
        except AuthenticationError:
            logger.error("Stripe rejected the configured secret key")
            return False
        except StripeError as e:
            logger.error(f"Stripe unreachable: {e}")
            return False
        return True
