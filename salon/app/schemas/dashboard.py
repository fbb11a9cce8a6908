"""
Dashboard aggregation schemas.

Dashboard wire shape: ``{today: {...}, monthly: {...}, customers: {...}, system: {...}}``.
Period reports extend the same totals with their window.
"""
from datetime import date, datetime
from typing import List, Optional

from salon.app.schemas.common import CamelModel


class PeriodSummary(CamelModel):
    treatments: int = 0
    revenue: int = 0
    therapist_fees: int = 0
    free_treatments: int = 0
    profit: int = 0


class TreatmentDetail(CamelModel):
    id: int
    customer_name: str
    service_name: str
    therapist_name: str
    price: int
    is_free_visit: bool
    created_at: Optional[datetime] = None


class TodaySummary(PeriodSummary):
    treatments_detail: List[TreatmentDetail] = []


class CustomerStats(CamelModel):
    total: int
    ready_for_free: int


class SystemStats(CamelModel):
    active_services: int
    active_therapists: int


class DashboardSummary(CamelModel):
    date: str
    today: TodaySummary
    monthly: PeriodSummary
    customers: CustomerStats
    system: SystemStats


class PeriodReport(PeriodSummary):
    period: str
    start: date
    end: date  # inclusive
    customers: int = 0  # distinct registered customers served
    source: str = "treatments"  # or "bookkeeping" for a snapshotted month
