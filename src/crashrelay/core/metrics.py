"""
Prometheus metrics collection.

Each app gets its own registry so several apps can live in one process.
"""

from typing import Optional

import structlog
from prometheus_client import CollectorRegistry, Counter, Histogram, Info

from .. import __version__

logger = structlog.get_logger(__name__)

# Webhook outcomes
OUTCOME_REJECTED = "rejected"
OUTCOME_FILTERED = "filtered"
OUTCOME_FORWARDED = "forwarded"
OUTCOME_DELIVERY_FAILED = "delivery_failed"


class MetricsCollector:
    """
    Centralized metrics collection for CrashRelay.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        # Service info
        self.service_info = Info(
            "crashrelay_service",
            "CrashRelay service information",
            registry=self.registry,
        )
        self.service_info.info({
            "version": __version__,
            "service": "crashrelay",
        })

        self.webhooks_received_total = Counter(
            "crashrelay_webhooks_received_total",
            "Total webhook calls by outcome",
            ["outcome"],
            registry=self.registry,
        )

        self.push_duration = Histogram(
            "crashrelay_push_duration_seconds",
            "Humio push duration in seconds",
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=self.registry,
        )

    def record_webhook(self, outcome: str) -> None:
        """Record the outcome of one webhook call."""
        self.webhooks_received_total.labels(outcome=outcome).inc()

    def record_push(self, duration_seconds: float) -> None:
        """Record a Humio push attempt."""
        self.push_duration.observe(duration_seconds)
