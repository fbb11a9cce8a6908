"""Closed-month revenue snapshots."""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, DateTime, Text, UniqueConstraint
from salon.app.core.database import Base


class MonthlyBookkeepingORM(Base):
    __tablename__ = "monthly_bookkeeping"
    __table_args__ = (UniqueConstraint("year", "month", name="uq_bookkeeping_year_month"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    year = Column(Integer, nullable=False, index=True)
    month = Column(Integer, nullable=False)
    total_revenue = Column(Integer, default=0, nullable=False)
    total_therapist_fees = Column(Integer, default=0, nullable=False)
    total_treatments = Column(Integer, default=0, nullable=False)
    free_treatments = Column(Integer, default=0, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
