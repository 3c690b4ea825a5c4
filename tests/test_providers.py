from unittest.mock import MagicMock, patch

from kombu.exceptions import OperationalError

from eats.core.config import get_settings
from eats.services.gateway import (
    MockPaymentGateway,
    get_payment_gateway,
    reset_payment_gateway,
)
from eats.services.notifications import (
    MockNotificationService,
    get_notification_service,
    reset_notification_service,
)
from eats.tasks import queue_verification_email


def test_development_mode_uses_mock_providers():
    reset_payment_gateway()
    reset_notification_service()

    assert get_settings().is_development
    assert isinstance(get_payment_gateway(), MockPaymentGateway)
    assert isinstance(get_notification_service(), MockNotificationService)


async def test_mock_gateway_accepts_and_rejects():
    gateway = MockPaymentGateway(max_latency=0.0)

    accepted = await gateway.verify_transaction("pi_123")
    declined = await gateway.verify_transaction("fail_pi_123")
    empty = await gateway.verify_transaction("")

    assert accepted.success
    assert accepted.status == "succeeded"
    assert not declined.success
    assert declined.error_message
    assert not empty.success


async def test_mock_gateway_failure_rate():
    gateway = MockPaymentGateway(failure_rate=1.0, max_latency=0.0)
    assert not (await gateway.verify_transaction("pi_123")).success


async def test_verification_email_uses_template():
    service = MockNotificationService(max_latency=0.0)

    result = await service.send_verification_email("client@eats.io", "abc123")

    assert result.success
    assert result.provider == "mock"
    sent = service.sent[0]
    assert sent["to_email"] == "client@eats.io"
    assert sent["template_id"] == get_settings().sendgrid_verification_template_id
    assert sent["template_data"] == {"code": "abc123", "username": "client@eats.io"}


async def test_mock_notification_failure():
    service = MockNotificationService(failure_rate=1.0, max_latency=0.0)

    result = await service.send_verification_email("client@eats.io", "abc123")

    assert not result.success
    assert service.sent == []


def test_queue_verification_email_hands_off_to_worker():
    with patch("eats.tasks.send_verification_email") as task:
        queue_verification_email("client@eats.io", "abc123")
    task.delay.assert_called_once_with("client@eats.io", "abc123")


def test_queue_verification_email_survives_broker_outage():
    task = MagicMock()
    task.delay.side_effect = OperationalError("broker down")

    with patch("eats.tasks.send_verification_email", task):
        queue_verification_email("client@eats.io", "abc123")

    task.delay.assert_called_once()
