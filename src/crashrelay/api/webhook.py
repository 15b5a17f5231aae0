"""
Crashlytics webhook endpoint.

Main endpoint: POST /webhook?token=<secret>
"""

import structlog
from fastapi import APIRouter, Depends, Request, Response, status

from ..core.auth import authenticate_webhook
from ..core.decoder import check_request, decode_webhook
from ..core.exceptions import ValidationError
from ..core.metrics import OUTCOME_REJECTED
from ..core.relay import WebhookRelay

logger = structlog.get_logger(__name__)

router = APIRouter()

WEBHOOK_PATH = "/webhook"

# Common methods are routed here; any other method is turned into 400 by
# the app's 405 handler
WEBHOOK_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def get_webhook_relay(request: Request) -> WebhookRelay:
    """Dependency to get the webhook relay from app state."""
    return request.app.state.relay


@router.api_route(
    WEBHOOK_PATH,
    methods=WEBHOOK_METHODS,
    status_code=200,
    dependencies=[Depends(authenticate_webhook)],
    responses={
        400: {"description": "Not a POST, empty body or malformed JSON"},
        401: {"description": "Missing or invalid token query parameter"},
    },
    summary="Receive Crashlytics webhook",
    description="""
    Receive a Crashlytics webhook callback and relay issue events to Humio.

    **Processing Pipeline:**
    1. Token authentication (`token` query parameter)
    2. Method and body checks
    3. JSON decoding of the webhook envelope
    4. Filtering on `payload_type == "issue"`
    5. Translation and push to the Humio ingest API

    Verification pings and other payload types are acknowledged with 200
    and not forwarded. Humio delivery failures are logged; the caller still
    receives 200.
    """,
)
async def receive_webhook(
    request: Request,
    relay: WebhookRelay = Depends(get_webhook_relay),
) -> Response:
    """
    Receive a Crashlytics webhook.
    """
    try:
        check_request(request.method, request.headers.get("content-length"))
        event = decode_webhook(await request.body())
    except ValidationError:
        metrics = getattr(request.app.state, "metrics", None)
        if metrics:
            metrics.record_webhook(OUTCOME_REJECTED)
        raise

    logger.debug(
        "Webhook received",
        event=event.event,
        payload_type=event.payload_type,
    )

    await relay.relay(event)
    return Response(status_code=status.HTTP_200_OK)
