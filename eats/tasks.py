"""
Celery Tasks
Background work decoupled from request handling: verification emails
and expiry of paid restaurant promotions.
"""

import asyncio
import logging
from datetime import datetime, timezone

from kombu.exceptions import OperationalError

from eats.celery_worker import celery_app
from eats.core.config import get_settings
from eats.services.notifications import get_notification_service

logger = logging.getLogger(__name__)
settings = get_settings()


class NotificationError(Exception):
    """Raised inside a task so Celery schedules a retry."""


@celery_app.task(
    bind=True,
    max_retries=settings.email_max_retries,
    default_retry_delay=5,
    autoretry_for=(NotificationError,),
    retry_backoff=True
)
def send_verification_email(self, email: str, code: str) -> dict:
    """
    Deliver an account verification code.

    Args:
        email: Recipient address
        code: Verification code to embed in the template

    Returns:
        dict: Provider outcome
    """
    task_id = self.request.id
    service = get_notification_service()

    result = asyncio.run(service.send_verification_email(email, code))
    if not result.success:
        logger.warning(
            f"Task {task_id}: verification email to {email} failed "
            f"(attempt {self.request.retries + 1}) - {result.error_message}"
        )
        raise NotificationError(result.error_message or "Email delivery failed")

    logger.info(f"Task {task_id}: verification email sent to {email} ({result.message_id})")
    return {
        'success': True,
        'message_id': result.message_id,
        'provider': result.provider,
    }


def queue_verification_email(email: str, code: str) -> None:
    """
    Hand a verification email to the worker without waiting for it.

    Delivery is best effort: a broker outage is logged and never reaches
    the caller.
    """
    try:
        send_verification_email.delay(email, code)
    except OperationalError as e:
        logger.error(f"Could not queue verification email for {email}: {e}")


async def _expire_promotions() -> int:
    # Imported lazily so the worker does not build the engine until needed
    from eats.database import async_session_maker, engine
    from eats.services.payments import PaymentService

    try:
        async with async_session_maker() as session:
            result = await PaymentService(session).expire_promotions(
                datetime.now(timezone.utc)
            )
            return result.value or 0
    finally:
        await engine.dispose()


@celery_app.task
def expire_promotions() -> dict:
    """Un-promote restaurants whose paid promotion has ended."""
    expired = asyncio.run(_expire_promotions())
    return {
        'expired': expired,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }
