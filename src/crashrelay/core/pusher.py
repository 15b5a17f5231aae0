"""
Delivery of push records to the Humio structured ingest API.

Features:
- Pusher protocol so the webhook handler can run against any sink
- Single POST per record, no retry
- Non-200 responses logged with their body and raised as DeliveryError
"""

import asyncio
from typing import Protocol

import aiohttp
import structlog
from yarl import URL

from .. import __version__
from ..models.push import PushRecord, build_ingest_payload, serialize_ingest_payload
from .exceptions import DeliveryError

logger = structlog.get_logger(__name__)

INGEST_PATH = "/api/v1/ingest/"
DEFAULT_INGEST_ENDPOINT = "humio-structured"


class Pusher(Protocol):
    """Anything that can deliver a push record downstream."""

    async def push(self, record: PushRecord) -> None:
        """Deliver one record, raising DeliveryError on failure."""
        ...


class HumioPusher:
    """
    Pushes records to Humio through a shared aiohttp session.

    The session owns connection pooling and the request timeout.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: URL,
        ingest_token: str,
        ingest_endpoint: str = DEFAULT_INGEST_ENDPOINT,
    ) -> None:
        self.session = session
        self.ingest_token = ingest_token
        # Absolute path, so any path on the base URL is replaced
        self.ingest_url = url.join(URL(INGEST_PATH + ingest_endpoint))

        logger.info("Humio pusher initialized", ingest_url=str(self.ingest_url))

    async def push(self, record: PushRecord) -> None:
        """
        Send one record to Humio.

        Raises:
            DeliveryError: on transport failure or any status other than 200
        """
        body = serialize_ingest_payload(build_ingest_payload(record))

        headers = {
            "Authorization": f"Bearer {self.ingest_token}",
            "Content-Type": "application/json",
            "User-Agent": f"crashrelay/{__version__}",
        }

        try:
            async with self.session.post(self.ingest_url, data=body, headers=headers) as response:
                if response.status == 200:
                    logger.debug("Successfully pushed to Humio", type=record.type)
                    return

                # Proxies may answer with bodies that are not valid UTF-8
                error_text = await response.text(errors="replace")
                logger.error(
                    "Humio returned error",
                    status=response.status,
                    body=error_text,
                )
                raise DeliveryError(
                    f"humio status code not ok: {response.status} {response.reason}",
                    details={"status": response.status},
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DeliveryError(
                f"humio request failed: {e!r}",
                details={"error_type": type(e).__name__},
            ) from e
