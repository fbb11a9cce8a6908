from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float
from salon.app.core.database import Base


class TherapistORM(Base):
    __tablename__ = "therapists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    initial = Column(String(10), nullable=False)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    base_fee_per_treatment = Column(Integer, default=0, nullable=False)
    commission_rate = Column(Float, default=0.0, nullable=False)  # 0.0 to 1.0
    total_treatments = Column(Integer, default=0, nullable=False)
    total_earnings = Column(Integer, default=0, nullable=False)
    average_rating = Column(Float, default=0.0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
