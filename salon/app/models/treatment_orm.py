"""
ORM model for a single billable treatment.

Names of the customer and service are denormalized onto the row so history
stays readable after the catalogue changes.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from salon.app.core.database import Base


class TreatmentORM(Base):
    __tablename__ = "treatments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(DateTime, nullable=False, index=True)  # Salon wall-clock time
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = Column(String(255), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    service_name = Column(String(255), nullable=False)
    therapist_id = Column(Integer, ForeignKey("therapists.id"), nullable=False, index=True)
    price = Column(Integer, default=0, nullable=False)
    tip_amount = Column(Integer, default=0, nullable=False)
    payment_method = Column(String(50), default="cash", nullable=False)
    is_free_visit = Column(Boolean, default=False, nullable=False)
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    customer = relationship("CustomerORM", back_populates="treatments")
    service = relationship("ServiceORM")
    therapist = relationship("TherapistORM")
    feedback = relationship("FeedbackORM", back_populates="treatment", uselist=False)
