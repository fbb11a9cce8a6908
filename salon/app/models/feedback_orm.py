from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from salon.app.core.database import Base


class FeedbackORM(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, autoincrement=True)
    treatment_id = Column(Integer, ForeignKey("treatments.id"), unique=True, nullable=True)
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(32), nullable=False, index=True)
    service_name = Column(String(255), default="", nullable=False)
    therapist_name = Column(String(255), default="", nullable=False, index=True)
    # Ratings are 1..5, 0 means "not given"
    therapist_rating = Column(Integer, default=0, nullable=False)
    service_rating = Column(Integer, default=0, nullable=False)
    cleanliness_rating = Column(Integer, default=0, nullable=False)
    value_rating = Column(Integer, default=0, nullable=False)
    overall_rating = Column(Integer, default=0, nullable=False)
    comment = Column(Text, default="", nullable=False)
    would_recommend = Column(Boolean, default=True, nullable=False)
    is_anonymous = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    treatment = relationship("TreatmentORM", back_populates="feedback")
