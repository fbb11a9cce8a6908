"""
Handler Registry for the salon event bus.

Maps event types to handler coroutines. Each handler gets its own database
session and its own error channel: a failing handler is logged and the
remaining handlers still run. Nothing propagates back to the request that
published the event.
"""
import logging
from typing import Awaitable, Callable, Dict, List

from salon.app.core.database import Database
from salon.app.events.schemas import BaseEvent, FeedbackSubmittedEvent
from salon.app.services.feedback_service import refresh_therapist_rating
from salon.app.services.loyalty_service import LoyaltyUpdater

logger = logging.getLogger(__name__)

Handler = Callable[[BaseEvent], Awaitable[None]]


class EventDispatcher:
    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}

    def register(self, event_type: str, handler: Handler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.info(f"Handler registered: {event_type} → {handler.__name__}")

    def handlers_for(self, event_type: str) -> List[Handler]:
        return list(self._handlers.get(event_type, []))

    def has_handler(self, event_type: str) -> bool:
        return bool(self._handlers.get(event_type))

    async def dispatch(self, event: BaseEvent) -> int:
        """Run every handler for the event; returns how many failed."""
        handlers = self.handlers_for(event.event_type)
        if not handlers:
            logger.debug(f"No handler for event type: {event.event_type}")
            return 0

        failures = 0
        for handler in handlers:
            try:
                await handler(event)
                logger.debug(f"Event handled: {event.event_type} by {handler.__name__} (id={event.event_id[:8]}...)")
            except Exception as e:
                failures += 1
                logger.error(
                    f"Handler {handler.__name__} failed for {event.event_type}: {e}",
                    exc_info=True,
                    extra={"extra_data": {"event_id": event.event_id, "handler": handler.__name__}},
                )
        return failures


def build_dispatcher(database: Database, loyalty: LoyaltyUpdater) -> EventDispatcher:
    """Wire the production handlers against the given database."""
    dispatcher = EventDispatcher()

    async def update_customer_loyalty(event: BaseEvent) -> None:
        if not isinstance(event, FeedbackSubmittedEvent):
            return
        async with database.session() as session:
            customer = await loyalty.record_visit(
                session, event.customer_name, event.customer_phone, event.amount
            )
        if customer is None:
            logger.info(f"Customer not found for loyalty update: {event.customer_name!r}")

    async def update_therapist_rating(event: BaseEvent) -> None:
        if not isinstance(event, FeedbackSubmittedEvent) or event.treatment_id is None:
            return
        async with database.session() as session:
            await refresh_therapist_rating(session, event.treatment_id)

    dispatcher.register("feedback_submitted", update_customer_loyalty)
    dispatcher.register("feedback_submitted", update_therapist_rating)
    return dispatcher
