"""
Webhook relay: filter, translate and push a decoded Crashlytics event.

Delivery failures never reach the webhook caller, whatever the pusher
raises. Crashlytics retries on non-2xx responses and a retry cannot fix a
failing Humio, so failures are logged and the event is acknowledged.
"""

import time
from typing import Optional

import structlog

from ..models.webhook import InboundEvent
from .decoder import is_forwardable
from .exceptions import DeliveryError
from .metrics import (
    OUTCOME_DELIVERY_FAILED,
    OUTCOME_FILTERED,
    OUTCOME_FORWARDED,
    MetricsCollector,
)
from .pusher import Pusher
from .translator import Clock, translate

logger = structlog.get_logger(__name__)


class WebhookRelay:
    """
    Relays decoded webhook events to a pusher.

    Holds no per-request state; one instance serves all requests.
    """

    def __init__(
        self,
        pusher: Pusher,
        now: Clock = time.time_ns,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.pusher = pusher
        self.now = now
        self.metrics = metrics

    async def relay(self, event: InboundEvent) -> bool:
        """
        Forward an event if it is an issue event.

        Returns True only when the event was delivered.
        """
        if not is_forwardable(event):
            logger.debug(
                "Dropping non-issue webhook",
                event=event.event,
                payload_type=event.payload_type,
            )
            self._record(OUTCOME_FILTERED)
            return False

        record = translate(self.now, event)
        start = time.perf_counter()
        try:
            await self.pusher.push(record)
        except DeliveryError as e:
            logger.error(
                "webhook: push to humio failed",
                payload_type=record.type,
                error=str(e),
                details=e.details,
            )
            self._record(OUTCOME_DELIVERY_FAILED)
            return False
        except Exception as e:
            logger.error(
                "webhook: push to humio failed",
                payload_type=record.type,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            self._record(OUTCOME_DELIVERY_FAILED)
            return False
        finally:
            if self.metrics:
                self.metrics.record_push(time.perf_counter() - start)

        logger.info(
            "Webhook event forwarded",
            event=event.event,
            payload_type=record.type,
            timestamp=record.timestamp,
        )
        self._record(OUTCOME_FORWARDED)
        return True

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_webhook(outcome)
