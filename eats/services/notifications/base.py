"""
Outgoing email contract.

The marketplace only sends provider-side templates: the template lives in
the email provider, the backend supplies the recipient and the variables.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from eats.core.config import get_settings

VERIFICATION_SUBJECT = "Verify Your Email"


@dataclass
class NotificationResult:
    """Outcome of one send attempt. Providers never raise to the caller."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


class BaseNotificationService(ABC):
    """Email provider used by the verification workflow."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        ...

    @abstractmethod
    async def send_template_email(
        self,
        to_email: str,
        subject: str,
        template_id: str,
        template_data: dict[str, Any],
    ) -> NotificationResult:
        """Render ``template_id`` with ``template_data`` and deliver it."""

    @abstractmethod
    async def health_check(self) -> bool:
        ...

    async def send_verification_email(self, email: str, code: str) -> NotificationResult:
        """
        Mail the account verification code.

        The template receives ``code`` and ``username`` (the address itself).
        """
        return await self.send_template_email(
            to_email=email,
            subject=VERIFICATION_SUBJECT,
            template_id=get_settings().sendgrid_verification_template_id,
            template_data={"code": code, "username": email},
        )
