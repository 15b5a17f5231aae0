"""
Health check endpoint.

- /healthz: Liveness probe (always 200 if service alive)
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter

from .. import __version__

router = APIRouter()


@router.get(
    "/healthz",
    status_code=200,
    summary="Liveness probe",
    description="""
    Liveness probe endpoint.

    Always returns 200 OK if the service is running. Humio reachability is
    not checked; delivery failures show up in logs and metrics instead.
    """,
)
async def liveness_check() -> Dict[str, Any]:
    """
    Liveness probe - always returns 200 if service is alive.
    """
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "crashrelay",
        "version": __version__,
    }
