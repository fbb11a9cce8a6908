"""Services package."""

from salon.app.services.aggregation_service import AggregationService
from salon.app.services.auth_service import AuthService
from salon.app.services.feedback_service import FeedbackService
from salon.app.services.loyalty_service import LoyaltyUpdater
from salon.app.services.treatment_service import TreatmentService

__all__ = [
    "AggregationService",
    "AuthService",
    "FeedbackService",
    "LoyaltyUpdater",
    "TreatmentService",
]
