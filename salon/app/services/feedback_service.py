"""
Customer feedback.

The feedback row is written and committed first. Loyalty counters and the
therapist rating are updated afterwards by event handlers; the submitter
gets their answer as soon as the row is stored.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from salon.app.core.database import Database
from salon.app.core.errors import ConflictError, NotFoundError, ValidationError
from salon.app.events.bus import EventBus
from salon.app.events.schemas import FeedbackSubmittedEvent
from salon.app.models.feedback_orm import FeedbackORM
from salon.app.models.therapist_orm import TherapistORM
from salon.app.models.treatment_orm import TreatmentORM
from salon.app.schemas.feedback import (
    FeedbackAnalytics,
    FeedbackCreate,
    FeedbackResponse,
    FeedbackStatus,
    RatingBucket,
)

logger = logging.getLogger(__name__)

RATING_FIELDS = (
    "therapist_rating",
    "service_rating",
    "cleanliness_rating",
    "value_rating",
    "overall_rating",
)


def _average(values: List[int]) -> float:
    # 0 means the question was skipped
    given = [v for v in values if v]
    if not given:
        return 0.0
    return round(sum(given) / len(given), 2)


def feedback_analytics(rows: Iterable[FeedbackORM]) -> FeedbackAnalytics:
    """Averages, recommendation share and overall-rating distribution."""
    rows = list(rows)
    total = len(rows)
    recommend = sum(1 for r in rows if r.would_recommend)

    distribution = []
    for rating in range(1, 6):
        count = sum(1 for r in rows if r.overall_rating == rating)
        distribution.append(RatingBucket(
            rating=rating,
            count=count,
            percentage=round(count * 100 / total, 1) if total else 0.0,
        ))

    return FeedbackAnalytics(
        total_feedback=total,
        average_overall=_average([r.overall_rating for r in rows]),
        average_service=_average([r.service_rating for r in rows]),
        average_therapist=_average([r.therapist_rating for r in rows]),
        average_cleanliness=_average([r.cleanliness_rating for r in rows]),
        average_value=_average([r.value_rating for r in rows]),
        recommend_count=recommend,
        recommend_percentage=round(recommend * 100 / total, 1) if total else 0.0,
        distribution=distribution,
    )


async def refresh_therapist_rating(session: AsyncSession, treatment_id: int) -> Optional[float]:
    """
    Recompute the average therapist rating for the therapist of a treatment.

    Returns the new average, or None when the treatment no longer exists.
    """
    treatment = await session.get(TreatmentORM, treatment_id)
    if treatment is None:
        logger.info(f"Treatment {treatment_id} gone, rating not refreshed")
        return None

    result = await session.execute(
        select(func.avg(FeedbackORM.therapist_rating))
        .join(TreatmentORM, FeedbackORM.treatment_id == TreatmentORM.id)
        .where(TreatmentORM.therapist_id == treatment.therapist_id, FeedbackORM.therapist_rating > 0)
    )
    average = result.scalar()

    therapist = await session.get(TherapistORM, treatment.therapist_id)
    if therapist is None:
        return None
    therapist.average_rating = round(float(average), 2) if average is not None else 0.0
    await session.flush()

    logger.info(
        f"Therapist {therapist.id} rating refreshed",
        extra={"extra_data": {"therapist_id": therapist.id, "average_rating": therapist.average_rating}},
    )
    return therapist.average_rating


class FeedbackService:
    def __init__(self, database: Database, bus: Optional[EventBus] = None):
        self.database = database
        self.bus = bus

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.database.session_factory() as session:
            async with session.begin():
                yield session

    async def submit(self, payload: FeedbackCreate, correlation_id: Optional[str] = None) -> FeedbackResponse:
        customer_name = payload.customer_name.strip()
        customer_phone = payload.customer_phone.strip()
        if not customer_name or not customer_phone:
            raise ValidationError("Missing required fields: customerName, customerPhone")

        try:
            async with self._transaction() as session:
                service_name = payload.service_name
                therapist_name = payload.therapist_name

                if payload.treatment_id is not None:
                    treatment = await session.get(
                        TreatmentORM,
                        payload.treatment_id,
                        options=[selectinload(TreatmentORM.therapist)],
                    )
                    if treatment is None:
                        raise NotFoundError("Treatment not found")

                    existing = await session.execute(
                        select(FeedbackORM.id).where(FeedbackORM.treatment_id == treatment.id)
                    )
                    if existing.scalar_one_or_none() is not None:
                        raise ConflictError("Feedback already submitted for this treatment")

                    service_name = service_name or treatment.service_name
                    if not therapist_name and treatment.therapist is not None:
                        therapist_name = treatment.therapist.full_name

                feedback = FeedbackORM(
                    treatment_id=payload.treatment_id,
                    customer_name=customer_name,
                    customer_phone=customer_phone,
                    service_name=service_name,
                    therapist_name=therapist_name,
                    comment=payload.comment or "",
                    would_recommend=payload.would_recommend,
                    is_anonymous=payload.is_anonymous,
                    **{field: getattr(payload, field) or 0 for field in RATING_FIELDS},
                )
                session.add(feedback)
                await session.flush()
                response = FeedbackResponse.model_validate(feedback)
        except IntegrityError:
            # Lost the race against a concurrent submission for the same treatment
            raise ConflictError("Feedback already submitted for this treatment")

        logger.info(
            f"Feedback {response.id} stored",
            extra={"extra_data": {"feedback_id": response.id, "treatment_id": response.treatment_id}},
        )

        self._publish(FeedbackSubmittedEvent(
            feedback_id=response.id,
            treatment_id=response.treatment_id,
            customer_name=customer_name,
            customer_phone=customer_phone,
            amount=payload.service_price,
            correlation_id=correlation_id,
        ))
        return response

    def _publish(self, event: FeedbackSubmittedEvent) -> None:
        if self.bus is None:
            logger.warning(f"No event bus, {event.event_type} not published")
            return
        try:
            self.bus.publish(event)
        except asyncio.QueueFull:
            logger.error(f"Could not queue {event.event_type} for feedback {event.feedback_id}")

    async def list(
        self,
        min_rating: Optional[int] = None,
        therapist_name: Optional[str] = None,
    ) -> List[FeedbackORM]:
        stmt = select(FeedbackORM).order_by(FeedbackORM.created_at.desc(), FeedbackORM.id.desc())
        if min_rating:
            stmt = stmt.where(FeedbackORM.overall_rating >= min_rating)
        if therapist_name:
            stmt = stmt.where(FeedbackORM.therapist_name.ilike(f"%{therapist_name}%"))

        async with self.database.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def analytics(self) -> FeedbackAnalytics:
        return feedback_analytics(await self.list())

    async def check(self, treatment_ids: Iterable[int]) -> Dict[int, FeedbackStatus]:
        """Feedback status per treatment, for every id asked about."""
        ids = list(dict.fromkeys(treatment_ids))
        if not ids:
            return {}

        async with self.database.session_factory() as session:
            result = await session.execute(
                select(FeedbackORM.treatment_id, FeedbackORM.overall_rating, FeedbackORM.created_at)
                .where(FeedbackORM.treatment_id.in_(ids))
            )
            found = {treatment_id: (rating, created_at) for treatment_id, rating, created_at in result.all()}

        statuses = {}
        for treatment_id in ids:
            if treatment_id in found:
                rating, created_at = found[treatment_id]
                statuses[treatment_id] = FeedbackStatus(
                    has_feedback=True, rating=rating or None, submitted_at=created_at
                )
            else:
                statuses[treatment_id] = FeedbackStatus(has_feedback=False)
        return statuses
