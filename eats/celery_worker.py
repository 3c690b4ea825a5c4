"""
Celery application for background work.

Redis is both broker and result backend. Two queues keep slow email
delivery away from periodic maintenance:
    - emails: verification messages
    - maintenance: promotion expiry (scheduled by beat)

Run:
    celery -A eats.celery_worker worker -Q emails,maintenance --loglevel=info
    celery -A eats.celery_worker beat --loglevel=info
"""

from celery import Celery
from celery.schedules import crontab

from eats.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "eats_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["eats.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_routes={
        "eats.tasks.send_verification_email": {"queue": "emails"},
        "eats.tasks.expire_promotions": {"queue": "maintenance"},
    },
    # Email tasks wait on SendGrid; hand them out one at a time
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    result_expires=60 * 60,
    broker_connection_retry_on_startup=True,
    beat_schedule={
        "expire-promotions": {
            "task": "eats.tasks.expire_promotions",
            "schedule": crontab(minute=0),
        },
    },
)


if __name__ == "__main__":
    celery_app.start()
