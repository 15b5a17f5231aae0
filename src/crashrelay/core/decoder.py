"""
Webhook request checks, body decoding and event filtering.
"""

from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..models.webhook import ISSUE_PAYLOAD_TYPE, InboundEvent
from .exceptions import ValidationError

logger = structlog.get_logger(__name__)


def check_request(method: str, content_length: Optional[str]) -> None:
    """
    Reject anything that is not a POST carrying a body.

    A missing or unparsable Content-Length counts as no body.
    """
    if method.upper() != "POST":
        raise ValidationError("Method not allowed", details={"method": method})

    try:
        length = int(content_length) if content_length is not None else -1
    except ValueError:
        length = -1

    if length <= 0:
        raise ValidationError("Request body required")


def decode_webhook(body: bytes) -> InboundEvent:
    """
    Decode a webhook body into an InboundEvent.

    Raises ValidationError for malformed JSON or an unexpected top-level shape.
    """
    try:
        return InboundEvent.model_validate_json(body)
    except PydanticValidationError as e:
        logger.error("webhook: unmarshal payload failed", error=str(e))
        raise ValidationError(
            "Invalid webhook payload",
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        ) from e


def is_forwardable(event: InboundEvent) -> bool:
    """Only issue events are relayed; pings and verifications are dropped."""
    return event.payload_type == ISSUE_PAYLOAD_TYPE
