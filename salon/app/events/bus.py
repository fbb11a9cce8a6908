"""
In-Memory Event Bus.

asyncio.Queue-based bus for decoupled side effects. One instance is created
in the application lifespan and kept on ``app.state.event_bus``.

asyncio.Queue is task-safe (not thread-safe).
"""
import asyncio
import logging

from fastapi import Request

from salon.app.events.schemas import BaseEvent

logger = logging.getLogger(__name__)


class EventBus:
    def __init__(self, maxsize: int = 1000):
        """
        Args:
            maxsize: Maximum queue size (0 = unlimited)
        """
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        logger.info(f"Event bus initialized with maxsize={maxsize}")

    def publish(self, event: BaseEvent) -> None:
        """
        Publish an event to the bus.

        Raises:
            asyncio.QueueFull: If queue is at capacity
        """
        try:
            self._queue.put_nowait(event)
            logger.debug(
                f"Event published: {event.event_type} "
                f"(id={event.event_id[:8]}..., queue_size={self._queue.qsize()})"
            )
        except asyncio.QueueFull:
            logger.warning(
                f"Event bus full! Dropped event: {event.event_type} (id={event.event_id[:8]}...)"
            )
            raise

    async def get(self) -> BaseEvent:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every published event has been handled."""
        await self._queue.join()

    def qsize(self) -> int:
        return self._queue.qsize()


def get_event_bus(request: Request) -> EventBus:
    """
    Dependency returning the application's event bus.

    Raises RuntimeError if the bus was not initialized at startup.
    """
    bus = getattr(request.app.state, "event_bus", None)
    if bus is None:
        raise RuntimeError("Event bus not initialized. It is created in the app lifespan.")
    return bus
