"""
Translation of Crashlytics events into push records.
"""

from typing import Callable

from ..models.push import PushRecord
from ..models.webhook import InboundEvent

# Returns the current time in nanoseconds since the Unix epoch, like time.time_ns
Clock = Callable[[], int]


def translate(now: Clock, event: InboundEvent) -> PushRecord:
    """Map an inbound event to a push record stamped with now() in milliseconds."""
    return PushRecord(
        type=event.payload_type,
        timestamp=now() // 1_000_000,
        data=event.payload if event.payload is not None else {},
    )
