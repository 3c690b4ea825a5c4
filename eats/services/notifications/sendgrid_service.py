"""
SendGrid email provider.

Sends dynamic-template emails. The SendGrid client is synchronous, so the
HTTP call runs in a worker thread to keep the event loop free.
"""

import asyncio
import logging
from typing import Any, Optional

from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from eats.core.config import get_settings
from eats.services.notifications.base import BaseNotificationService, NotificationResult

logger = logging.getLogger(__name__)

ACCEPTED_STATUS = {200, 201, 202}


class SendGridNotificationService(BaseNotificationService):

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        settings = get_settings()
        api_key = api_key or settings.sendgrid_api_key
        self.from_email = from_email or settings.sendgrid_from_email
        self.client = SendGridAPIClient(api_key) if api_key else None
        if self.client is None:
            logger.warning("SENDGRID_API_KEY missing, emails will not be delivered")

    @property
    def provider_name(self) -> str:
        return "sendgrid"

    def _failure(self, reason: str) -> NotificationResult:
        return NotificationResult(success=False, error_message=reason, provider=self.provider_name)

    def _build_message(
        self,
        to_email: str,
        subject: str,
        template_id: str,
        template_data: dict[str, Any],
    ) -> Mail:
        message = Mail(from_email=self.from_email, to_emails=to_email, subject=subject)
        message.template_id = template_id
        # Templates may reference {{subject}} as well as their own variables
        message.dynamic_template_data = {"subject": subject, **template_data}
        return message

    async def send_template_email(
        self,
        to_email: str,
        subject: str,
        template_id: str,
        template_data: dict[str, Any],
    ) -> NotificationResult:
        if self.client is None:
            return self._failure("SendGrid not configured")

        message = self._build_message(to_email, subject, template_id, template_data)
        try:
            response = await asyncio.to_thread(self.client.send, message)
        except HTTPError as e:
            logger.error(f"SendGrid rejected email to {to_email}: {e}")
            return self._failure(str(e))

        if response.status_code not in ACCEPTED_STATUS:
            return self._failure(f"SendGrid answered {response.status_code}")

        message_id = response.headers.get("X-Message-Id")
        logger.info(f"SendGrid accepted '{subject}' for {to_email} ({message_id})")
        return NotificationResult(success=True, message_id=message_id, provider=self.provider_name)

    async def health_check(self) -> bool:
        return self.client is not None
