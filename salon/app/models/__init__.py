"""Models package."""

from salon.app.models.admin_orm import AdminORM
from salon.app.models.bookkeeping_orm import MonthlyBookkeepingORM
from salon.app.models.customer_orm import CustomerORM
from salon.app.models.feedback_orm import FeedbackORM
from salon.app.models.service_orm import ServiceORM
from salon.app.models.therapist_orm import TherapistORM
from salon.app.models.treatment_orm import TreatmentORM

__all__ = [
    "AdminORM",
    "MonthlyBookkeepingORM",
    "CustomerORM",
    "FeedbackORM",
    "ServiceORM",
    "TherapistORM",
    "TreatmentORM",
]
