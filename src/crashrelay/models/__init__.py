"""
Pydantic data models package.

Contains the models for:
- Crashlytics webhook envelopes
- Push records and Humio ingest payloads
"""

from .push import HumioEvent, HumioPayload, PushRecord, build_ingest_payload, serialize_ingest_payload
from .webhook import ISSUE_PAYLOAD_TYPE, InboundEvent

__all__ = [
    # Webhook models
    "InboundEvent",
    "ISSUE_PAYLOAD_TYPE",

    # Push models
    "PushRecord",
    "HumioEvent",
    "HumioPayload",
    "build_ingest_payload",
    "serialize_ingest_payload",
]
