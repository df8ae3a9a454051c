# storefront/notifications.py

"""
Order-confirmation notifications.

Dispatch is fire-and-forget: the order handler schedules it as a background
task and never waits on it. Whatever goes wrong in here is logged and
stops here.
"""

import uuid
from abc import ABC, abstractmethod

import requests

from storefront.config import Settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class Notifier(ABC):
    @abstractmethod
    def send_order_confirmation(self, order_id: uuid.UUID) -> None:
        ...


class LogNotifier(Notifier):
    """Simulates sending the confirmation email"""

    def send_order_confirmation(self, order_id: uuid.UUID) -> None:
        logger.info("notification.mock_email_sent", order_id=str(order_id), template="order-confirmation")


class WebhookNotifier(Notifier):
    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout

    def send_order_confirmation(self, order_id: uuid.UUID) -> None:
        response = requests.post(self.url, json={"order_id": str(order_id)}, timeout=self.timeout)
        response.raise_for_status()


def build_notifier(settings: Settings) -> Notifier:
    if settings.notification_webhook_url:
        return WebhookNotifier(settings.notification_webhook_url)
    return LogNotifier()


def dispatch_order_confirmation(notifier: Notifier, order_id: uuid.UUID) -> None:
    try:
        notifier.send_order_confirmation(order_id)
    except Exception as e:
        logger.warning("notification.failed", order_id=str(order_id), error=str(e))
