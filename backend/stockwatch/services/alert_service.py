"""Alert delivery for tracking events.

Events are formatted into ``notify(subject, body)`` calls. Delivery problems
stop at the dispatcher: a failed alert is logged, never raised into a
resolve or poll.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple

import httpx
import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from stockwatch.models.events import Event, NewProduct, Restock

logger = structlog.get_logger(__name__)


webhook_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=30),
    retry=retry_if_exception_type(
        (
            httpx.HTTPStatusError,
            httpx.ConnectError,
            httpx.TimeoutException,
        )
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


class Alerter(ABC):
    """Notification transport."""

    @abstractmethod
    async def notify(self, subject: str, body: str) -> None:
        pass


class LogAlerter(Alerter):
    """Writes alerts to the log only. Used when no webhook is configured."""

    async def notify(self, subject: str, body: str) -> None:
        logger.info("alert", subject=subject, body=body)


class WebhookAlerter(Alerter):
    """Posts alerts to a chat webhook as ``{"content": ...}``."""

    def __init__(self, webhook_url: str, http_client: httpx.AsyncClient):
        self.webhook_url = webhook_url
        self.http_client = http_client

    @webhook_retry
    async def notify(self, subject: str, body: str) -> None:
        response = await self.http_client.post(
            self.webhook_url, json={"content": f"{subject}\n{body}"}
        )
        response.raise_for_status()


def format_event(event: Event) -> Tuple[str, str]:
    """Return (subject, body) for an event.

    Raises:
        TypeError: If ``event`` is not a known event type
    """
    if isinstance(event, Restock):
        record = event.record
        subject = "🔁 Restock Alert"
        body = (
            f"{record.name}\n"
            f"SKU: {event.variant.sku}\n"
            f"Inventory: {event.previous_inventory} -> {event.inventory}\n"
            f"{record.url}"
        )
    elif isinstance(event, NewProduct):
        record = event.record
        subject = "🆕 New Product Tracked"
        in_stock = sum(1 for v in record.variants if v.available)
        body = (
            f"{record.name}\n"
            f"SKU: {record.sku}\n"
            f"Price: {record.price}\n"
            f"Variants in stock: {in_stock}/{len(record.variants)}\n"
            f"{record.url}"
        )
    else:
        raise TypeError(f"Unknown event type: {type(event).__name__}")
    return subject, body


class AlertDispatcher:
    """Sends one notification per event and swallows delivery failures."""

    def __init__(self, alerter: Optional[Alerter] = None):
        self.alerter = alerter or LogAlerter()
        self.logger = logger.bind(service="alert_dispatcher")

    async def dispatch(self, events: Iterable[Event]) -> int:
        """Deliver events in order.

        Returns:
            Number of events delivered successfully
        """
        delivered = 0
        for event in events:
            subject, body = format_event(event)
            try:
                await self.alerter.notify(subject, body)
                delivered += 1
            except Exception as e:
                self.logger.error(
                    "alert_delivery_failed",
                    event_type=type(event).__name__,
                    numeric_product_id=event.record.numeric_product_id,
                    error=str(e),
                )
        return delivered
