"""
In-process stand-in for the email provider.

Nothing leaves the machine: every accepted message is logged and kept in
``sent`` so tests and local runs can read the verification code back.
"""

import asyncio
import logging
import random
import uuid
from typing import Any

from eats.services.notifications.base import BaseNotificationService, NotificationResult

logger = logging.getLogger(__name__)


class MockNotificationService(BaseNotificationService):
    """
    Attributes:
        failure_rate: Share of sends that fail (0.0-1.0)
        max_latency: Upper bound of the simulated provider delay in seconds
        sent: Accepted messages, oldest first
    """

    def __init__(self, failure_rate: float = 0.0, max_latency: float = 0.3):
        self.failure_rate = failure_rate
        self.max_latency = max_latency
        self.sent: list[dict[str, Any]] = []
        logger.info(f"MockNotificationService ready (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def send_template_email(
        self,
        to_email: str,
        subject: str,
        template_id: str,
        template_data: dict[str, Any],
    ) -> NotificationResult:
        if self.max_latency:
            await asyncio.sleep(random.uniform(0, self.max_latency))

        if random.random() < self.failure_rate:
            logger.warning(f"Mock: delivery to {to_email} failed (simulated)")
            return NotificationResult(
                success=False,
                error_message="Simulated email failure",
                provider=self.provider_name,
            )

        self.sent.append(
            {
                "to_email": to_email,
                "subject": subject,
                "template_id": template_id,
                "template_data": template_data,
            }
        )
        message_id = f"email_mock_{uuid.uuid4().hex[:12]}"
        logger.info(f"Mock: '{subject}' [{template_id}] to {to_email} ({message_id}) {template_data}")
        return NotificationResult(success=True, message_id=message_id, provider=self.provider_name)

    async def health_check(self) -> bool:
        return True
