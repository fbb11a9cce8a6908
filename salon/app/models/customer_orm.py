"""Customer ORM model with loyalty counters."""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.orm import relationship
from salon.app.core.database import Base


class CustomerORM(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    phone = Column(String(32), unique=True, nullable=False, index=True)  # Contact key
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    total_visits = Column(Integer, default=0, nullable=False)
    total_spending = Column(Integer, default=0, nullable=False)
    loyalty_visits = Column(Integer, default=0, nullable=False)  # Visits toward the next free one
    is_vip = Column(Boolean, default=False, nullable=False)
    last_visit = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    treatments = relationship("TreatmentORM", back_populates="customer")
