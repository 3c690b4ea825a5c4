"""
Mock Payment Gateway

Confirms promotion payments without calling Stripe (ENV_MODE=development).

Behavior:
    - Identifiers starting with "fail_" are always declined, so scripted
      flows can exercise the rejection path
    - Other identifiers are declined with probability ``failure_rate``
    - Empty identifiers are declined
"""

import asyncio
import logging
import random

from eats.services.gateway.base import BasePaymentGateway, TransactionResult

logger = logging.getLogger(__name__)

DECLINE_PREFIX = "fail_"


class MockPaymentGateway(BasePaymentGateway):
    """
    Attributes:
        failure_rate: Probability of a simulated decline (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds
        amount: Amount reported for accepted transactions
    """

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.2,
        amount: float = 10.0,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.amount = amount
        logger.info(f"MockPaymentGateway ready (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    def _declines(self, transaction_id: str) -> bool:
        if not transaction_id or transaction_id.startswith(DECLINE_PREFIX):
            return True
        return random.random() < self.failure_rate

    async def verify_transaction(self, transaction_id: str) -> TransactionResult:
        if self.max_latency:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

        if self._declines(transaction_id):
            logger.info(f"Mock: transaction {transaction_id!r} declined")
            return TransactionResult(
                success=False,
                transaction_id=transaction_id,
                status="requires_payment_method",
                error_message="Transaction was not completed.",
            )

        logger.info(f"Mock: transaction {transaction_id} settled")
        return TransactionResult(
            success=True,
            transaction_id=transaction_id,
            amount=self.amount,
            status="succeeded",
        )

    async def health_check(self) -> bool:
        return True
