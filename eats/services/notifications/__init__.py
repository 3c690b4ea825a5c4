"""
Email provider selection.

    - ENV_MODE=development → MockNotificationService
    - ENV_MODE=staging|production → SendGridNotificationService
"""

import logging
from functools import lru_cache

from eats.core.config import get_settings
from eats.services.notifications.base import BaseNotificationService, NotificationResult
from eats.services.notifications.mock import MockNotificationService
from eats.services.notifications.sendgrid_service import SendGridNotificationService

logger = logging.getLogger(__name__)


@lru_cache()
def get_notification_service() -> BaseNotificationService:
    """Provider instance shared by the whole process."""
    settings = get_settings()
    service = MockNotificationService() if settings.is_development else SendGridNotificationService()
    logger.info(f"Notification provider: {service.provider_name} ({settings.env_mode.value})")
    return service


def reset_notification_service() -> None:
    """Forget the cached provider so the next lookup re-reads settings."""
    get_notification_service.cache_clear()


__all__ = [
    "get_notification_service",
    "reset_notification_service",
    "BaseNotificationService",
    "NotificationResult",
    "MockNotificationService",
    "SendGridNotificationService",
]
