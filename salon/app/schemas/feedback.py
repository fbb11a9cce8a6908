"""Customer feedback form, listing and analytics."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from salon.app.schemas.common import CamelModel


class FeedbackCreate(CamelModel):
    treatment_id: Optional[int] = None
    customer_name: str = ""
    customer_phone: str = ""
    service_name: str = ""
    therapist_name: str = ""
    therapist_rating: Optional[int] = Field(None, ge=0, le=5)
    service_rating: Optional[int] = Field(None, ge=0, le=5)
    cleanliness_rating: Optional[int] = Field(None, ge=0, le=5)
    value_rating: Optional[int] = Field(None, ge=0, le=5)
    overall_rating: Optional[int] = Field(None, ge=0, le=5)
    comment: Optional[str] = None
    would_recommend: bool = True
    is_anonymous: bool = False
    # Amount added to the customer's spending by the loyalty update
    service_price: int = Field(0, ge=0)


class FeedbackResponse(CamelModel):
    id: int
    treatment_id: Optional[int] = None
    customer_name: str
    customer_phone: str
    service_name: str
    therapist_name: str
    therapist_rating: int
    service_rating: int
    cleanliness_rating: int
    value_rating: int
    overall_rating: int
    comment: str
    would_recommend: bool
    is_anonymous: bool
    created_at: Optional[datetime] = None


class RatingBucket(CamelModel):
    rating: int
    count: int
    percentage: float


class FeedbackAnalytics(CamelModel):
    total_feedback: int
    average_overall: float
    average_service: float
    average_therapist: float
    average_cleanliness: float
    average_value: float
    recommend_count: int
    recommend_percentage: float
    distribution: List[RatingBucket]


class FeedbackCheckRequest(CamelModel):
    treatment_ids: List[int]


class FeedbackStatus(CamelModel):
    has_feedback: bool
    rating: Optional[int] = None
    submitted_at: Optional[datetime] = None
