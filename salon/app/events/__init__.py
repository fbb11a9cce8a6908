"""
Event bus and schemas for the salon backend.

Events carry side effects (loyalty counters, rating refresh) out of the
request that triggered them so their failures never reach the caller.
"""

from salon.app.events.bus import EventBus
from salon.app.events.schemas import BaseEvent, FeedbackSubmittedEvent

__all__ = [
    "EventBus",
    "BaseEvent",
    "FeedbackSubmittedEvent",
]
