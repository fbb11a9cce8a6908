from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from salon.app.core.database import Base


class ServiceORM(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)
    normal_price = Column(Integer, nullable=False)
    promo_price = Column(Integer, nullable=True)  # <= normal_price when set
    duration = Column(Integer, nullable=False)  # minutes
    therapist_fee = Column(Integer, default=0, nullable=False)  # Paid per non-free treatment
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    popularity = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
