"""
Background consumer for the salon event bus.

One task per process, started in the app lifespan. It drains the bus and
hands every event to the dispatcher under the event's own log context, so
loyalty and rating updates log with the correlation id of the feedback
request that caused them.
"""
import asyncio
import logging

from salon.app.core.logging import log_context
from salon.app.events.bus import EventBus
from salon.app.workers.handlers import EventDispatcher

logger = logging.getLogger(__name__)


async def _handle(dispatcher: EventDispatcher, bus: EventBus) -> None:
    event = await bus.get()
    with log_context(event.correlation_id, event.event_id):
        try:
            logger.debug(
                f"Dispatching {event.event_type}",
                extra={"extra_data": {"pending": bus.qsize()}},
            )
            await dispatcher.dispatch(event)
        except Exception as exc:
            # A broken event must not stop the loop.
            logger.error(f"Dispatch of {event.event_type} failed: {exc}", exc_info=True)
        finally:
            bus.task_done()


async def event_consumer_loop(bus: EventBus, dispatcher: EventDispatcher) -> None:
    logger.info("Event consumer started")
    try:
        while True:
            await _handle(dispatcher, bus)
    except asyncio.CancelledError:
        logger.info("Event consumer stopped")
        raise


def start_event_consumer(bus: EventBus, dispatcher: EventDispatcher) -> asyncio.Task:
    return asyncio.create_task(event_consumer_loop(bus, dispatcher), name="salon-event-consumer")


async def stop_event_consumer(task: asyncio.Task) -> None:
    """Cancel the consumer task and wait for it to unwind."""
    if task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
