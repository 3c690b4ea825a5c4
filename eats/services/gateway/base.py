"""
Payment gateway contract.

Owners pay for restaurant promotion on the client side; the backend only
confirms that the reported transaction really went through. Implementations
are swapped by ENV_MODE (see ``eats.services.gateway``).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class TransactionResult:
    """
    Verdict on one transaction.

    Attributes:
        success: True only for a settled transaction
        transaction_id: Identifier as reported by the client
        amount: Charged amount in major units, when known
        currency: ISO currency code
        status: Raw provider status
        error_message: Why the transaction was rejected
    """
    success: bool
    transaction_id: Optional[str] = None
    amount: Optional[float] = None
    currency: str = "usd"
    status: Optional[str] = None
    error_message: Optional[str] = None


class BasePaymentGateway(ABC):
    """
    Example:
        >>> gateway = get_payment_gateway()
        >>> verdict = await gateway.verify_transaction("pi_123")
        >>> verdict.success
        True
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        ...

    @abstractmethod
    async def verify_transaction(self, transaction_id: str) -> TransactionResult:
        """Look ``transaction_id`` up at the provider. Never raises."""

    @abstractmethod
    async def health_check(self) -> bool:
        """True when the provider answers with the configured credentials."""
