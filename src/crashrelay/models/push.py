"""
Push record and Humio structured ingest models.

Humio expects a JSON array of ingest batches:
    [{"tags": {...}, "events": [{"timestamp": ..., "attributes": {...}}]}]
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, field_validator


@dataclass
class PushRecord:
    """One event to be delivered to Humio."""
    type: str
    timestamp: int  # milliseconds since the Unix epoch
    data: Dict[str, Any] = field(default_factory=dict)


class HumioEvent(BaseModel):
    """Single structured Humio event."""

    timestamp: int = Field(description="Milliseconds since the Unix epoch")
    timezone: int = Field(default=0, description="Timezone offset, omitted when zero")
    attributes: Dict[str, Any] = Field(description="Event attributes")
    rawstring: str = Field(default="", description="Raw log line, omitted when empty")


class HumioPayload(BaseModel):
    """Humio structured ingest batch."""

    tags: Optional[Dict[str, str]] = Field(default=None, description="Batch tags")
    events: List[HumioEvent] = Field(description="Events in this batch")

    @field_validator("tags")
    def drop_empty_tags(cls, v: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        """Empty tags are treated as no tags so they are never sent."""
        return v or None


_payloads_adapter = TypeAdapter(List[HumioPayload])


def build_ingest_payload(record: PushRecord) -> List[HumioPayload]:
    """Wrap a push record in a one-batch, one-event ingest payload."""
    return [
        HumioPayload(
            events=[HumioEvent(timestamp=record.timestamp, attributes=record.data)],
        )
    ]


def serialize_ingest_payload(payloads: List[HumioPayload]) -> bytes:
    """
    Serialize ingest batches to JSON.

    Empty tags, empty rawstring and a zero timezone are dropped. timestamp and
    attributes are required fields and always written, so a zero timestamp
    is sent as 0.
    """
    return _payloads_adapter.dump_json(payloads, exclude_defaults=True)
