"""
Payloads carried on the salon event bus.

Feedback is published only after its row has committed, so handlers can
rely on the row being there.
"""
import uuid
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def _new_event_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=_new_event_id)
    event_type: str
    occurred_at: datetime = Field(default_factory=_utcnow)
    correlation_id: Optional[str] = Field(
        default=None, description="X-Correlation-ID of the request that produced the event"
    )


class FeedbackSubmittedEvent(BaseEvent):
    """A customer left feedback; drives loyalty counting and rating refresh."""

    event_type: Literal["feedback_submitted"] = "feedback_submitted"

    feedback_id: int
    treatment_id: Optional[int] = None
    # Identity exactly as typed on the form; loyalty matching is exact.
    customer_name: str
    customer_phone: str
    amount: int = Field(default=0, description="Visit amount added to the customer's spending")
