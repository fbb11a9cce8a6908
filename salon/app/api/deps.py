"""Request dependencies that hand out services bound to app state."""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from salon.app.core.config import Settings
from salon.app.core.database import Database, get_database, get_db
from salon.app.events.bus import EventBus, get_event_bus
from salon.app.services.aggregation_service import AggregationService
from salon.app.services.bookkeeping_service import BookkeepingService
from salon.app.services.feedback_service import FeedbackService
from salon.app.services.treatment_service import TreatmentService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_aggregation_service(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> AggregationService:
    return AggregationService(database, loyalty_threshold=settings.loyalty_threshold)


def get_treatment_service(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> TreatmentService:
    return TreatmentService(database, loyalty_threshold=settings.loyalty_threshold)


def get_feedback_service(
    database: Database = Depends(get_database),
    bus: EventBus = Depends(get_event_bus),
) -> FeedbackService:
    return FeedbackService(database, bus)


def get_bookkeeping_service(
    db: AsyncSession = Depends(get_db),
    aggregation: AggregationService = Depends(get_aggregation_service),
) -> BookkeepingService:
    return BookkeepingService(db, aggregation)
