"""
Integration tests for GET /api/reports.
"""
from datetime import datetime

import pytest
from sqlalchemy import text

from salon.app.core.errors import QueryFailed
from salon.app.services.aggregation_service import AggregationService

DAY = "2026-03-14"  # a Saturday


async def _report(client, period: str, day: str = DAY) -> dict:
    resp = await client.get("/api/reports", params={"period": period, "date": day})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    return body["data"]


@pytest.fixture
async def visits(authed_client, seed, treatment_payload):
    """Visits spread around the target week, month and year."""
    bodies = [
        treatment_payload(date="2026-03-08T18:00:00", price=10000),  # previous Sunday
        treatment_payload(date="2026-03-09T09:00:00", serviceId=seed.massage, price=70000),
        treatment_payload(date=f"{DAY}T10:00:00", price=50000),
        treatment_payload(
            date=f"{DAY}T11:00:00", customerId=None, customerName="Walk In", price=50000, isFreeVisit=True,
        ),
        treatment_payload(
            date="2026-03-16T10:00:00", customerId=None, customerName="Walk In", price=20000,
        ),
        treatment_payload(
            date="2026-11-02T10:00:00", customerId=None, customerName="Walk In", price=40000,
        ),
    ]
    for body in bodies:
        resp = await authed_client.post("/api/treatments", json=body)
        assert resp.status_code == 201, resp.text


@pytest.mark.asyncio
async def test_daily(authed_client, visits):
    report = await _report(authed_client, "daily")
    assert report["start"] == DAY
    assert report["end"] == DAY
    assert report["treatments"] == 2
    assert report["freeTreatments"] == 1
    assert report["revenue"] == 50000
    assert report["therapistFees"] == 20000
    assert report["profit"] == 30000
    assert report["customers"] == 1


@pytest.mark.asyncio
async def test_weekly_runs_monday_to_sunday(authed_client, visits):
    report = await _report(authed_client, "weekly")
    assert (report["start"], report["end"]) == ("2026-03-09", "2026-03-15")
    assert report["treatments"] == 3
    assert report["revenue"] == 120000
    assert report["therapistFees"] == 50000


@pytest.mark.asyncio
async def test_monthly_and_yearly(authed_client, visits):
    monthly = await _report(authed_client, "monthly")
    assert (monthly["start"], monthly["end"]) == ("2026-03-01", "2026-03-31")
    assert monthly["treatments"] == 5
    assert monthly["revenue"] == 150000
    assert monthly["source"] == "treatments"

    yearly = await _report(authed_client, "yearly")
    assert (yearly["start"], yearly["end"]) == ("2026-01-01", "2026-12-31")
    assert yearly["treatments"] == 6
    assert yearly["revenue"] == 190000
    assert yearly["customers"] == 1


@pytest.mark.asyncio
async def test_closed_month_reports_the_snapshot(authed_client, database, visits):
    await authed_client.post("/api/monthly-bookkeeping/close", json={"year": 2026, "month": 3})
    async with database.session() as session:
        await session.execute(text(
            "UPDATE monthly_bookkeeping SET total_revenue = 999000, total_therapist_fees = 9000"
        ))

    report = await _report(authed_client, "monthly")
    assert report["source"] == "bookkeeping"
    assert report["revenue"] == 999000
    assert report["profit"] == 990000

    # Other periods always come from the treatments
    assert (await _report(authed_client, "weekly"))["source"] == "treatments"


@pytest.mark.asyncio
async def test_empty_period(authed_client, seed):
    report = await _report(authed_client, "yearly", "2020-06-01")
    assert report["treatments"] == 0
    assert report["revenue"] == 0
    assert report["customers"] == 0


@pytest.mark.asyncio
async def test_invalid_period(authed_client):
    resp = await authed_client.get("/api/reports", params={"period": "hourly"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid period"


@pytest.mark.asyncio
async def test_malformed_date(authed_client):
    resp = await authed_client.get("/api/reports", params={"period": "daily", "date": "2026-13-40"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid date"


@pytest.mark.asyncio
async def test_requires_session(client):
    resp = await client.get("/api/reports")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_failed_read_is_named(database, seed):
    async with database.engine.begin() as conn:
        await conn.execute(text("DROP TABLE treatments"))

    service = AggregationService(database)
    with pytest.raises(QueryFailed) as excinfo:
        await service._treatments_between("today_treatments", datetime(2026, 3, 14), datetime(2026, 3, 15))

    assert excinfo.value.details.startswith("today_treatments:")
