"""
Prometheus metrics endpoint.

Exposes metrics in Prometheus text format for scraping.
"""

import structlog
from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="""
    Prometheus metrics endpoint in standard text format.

    **Key Metrics:**
    - crashrelay_webhooks_received_total{outcome} - Webhook calls by outcome
    - crashrelay_push_duration_seconds - Humio push latency histogram
    """,
)
async def get_metrics(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    metrics_collector = getattr(request.app.state, 'metrics', None)

    if not metrics_collector:
        logger.warning("Metrics collector not initialized")
        return Response(
            content="# Metrics collector not initialized\n",
            media_type=CONTENT_TYPE_LATEST,
        )

    metrics_data = generate_latest(metrics_collector.registry)

    logger.debug("Metrics scraped successfully", size_bytes=len(metrics_data))

    return Response(
        content=metrics_data,
        media_type=CONTENT_TYPE_LATEST,
    )
