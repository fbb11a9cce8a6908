from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from salon.app.api.deps import get_feedback_service
from salon.app.api.envelope import ok
from salon.app.core.security import Role, require_role
from salon.app.schemas.feedback import FeedbackCheckRequest, FeedbackCreate, FeedbackResponse
from salon.app.services.feedback_service import FeedbackService, feedback_analytics

router = APIRouter()


@router.post("")
async def submit_feedback(
    payload: FeedbackCreate,
    request: Request,
    service: FeedbackService = Depends(get_feedback_service),
):
    """
    Public feedback form. Loyalty counters are updated in the background
    once the feedback is stored.
    """
    feedback = await service.submit(payload, correlation_id=getattr(request.state, "correlation_id", None))
    return ok(feedback, message="Thank you for your feedback")


@router.get("", dependencies=[Depends(require_role(Role.ADMIN))])
async def list_feedback(
    min_rating: Optional[int] = Query(None, alias="minRating", ge=1, le=5),
    therapist_name: Optional[str] = Query(None, alias="therapistName"),
    analytics: bool = Query(False),
    service: FeedbackService = Depends(get_feedback_service),
):
    rows = await service.list(min_rating=min_rating, therapist_name=therapist_name)
    data = [FeedbackResponse.model_validate(r) for r in rows]
    if analytics:
        return ok(data, analytics=feedback_analytics(rows))
    return ok(data)


@router.post("/check", dependencies=[Depends(require_role(Role.ADMIN))])
async def check_feedback(
    payload: FeedbackCheckRequest,
    service: FeedbackService = Depends(get_feedback_service),
):
    """Which of the given treatments already have feedback, keyed by treatment id."""
    statuses = await service.check(payload.treatment_ids)
    return ok({str(treatment_id): status for treatment_id, status in statuses.items()})
