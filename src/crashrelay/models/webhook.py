"""
Crashlytics webhook data models.

Only the top-level envelope is validated; payload values are free-form
JSON and are passed through untouched.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ISSUE_PAYLOAD_TYPE = "issue"


class InboundEvent(BaseModel):
    """
    Crashlytics webhook envelope.

    Example issue event:
        {
            "event": "issue_impact_change",
            "payload_type": "issue",
            "payload": {"display_id": 123, "title": "Issue Title", ...}
        }
    """

    event: str = Field(default="", description="Event name, e.g. issue_impact_change")
    payload_type: str = Field(default="", description="Payload type tag, e.g. issue or none")
    payload: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Free-form event attributes",
    )

    model_config = ConfigDict(extra="ignore")

    @field_validator("event", "payload_type", mode="before")
    def null_as_empty(cls, v: Any) -> Any:
        """JSON null decodes to an empty string."""
        return "" if v is None else v
