"""
Integration tests for GET /api/dashboard-summary.
"""
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from salon.app.core.config import Settings
from salon.app.main import create_app, shutdown, startup

DAY = "2026-03-14"


async def _summary(client: AsyncClient, day: str = DAY) -> dict:
    resp = await client.get("/api/dashboard-summary", params={"date": day})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    return body["data"]


@pytest.mark.asyncio
async def test_paid_and_free_visit_on_the_same_day(authed_client, treatment_payload, seed):
    """50000 paid with a 20000 service fee plus a free visit."""
    paid = await authed_client.post("/api/treatments", json=treatment_payload(price=50000))
    free = await authed_client.post(
        "/api/treatments",
        json=treatment_payload(price=0, tipAmount=0, isFreeVisit=True, date=f"{DAY}T15:30:00"),
    )
    assert paid.status_code == 201, paid.text
    assert free.status_code == 201, free.text

    data = await _summary(authed_client)

    assert data["date"] == DAY
    today = data["today"]
    assert today["treatments"] == 2
    assert today["revenue"] == 50000
    assert today["therapistFees"] == 20000
    assert today["freeTreatments"] == 1
    assert today["profit"] == 30000
    assert len(today["treatmentsDetail"]) == 2
    detail = {d["id"]: d for d in today["treatmentsDetail"]}
    assert detail[paid.json()["data"]["id"]]["therapistName"] == "Ani Lestari"
    assert detail[free.json()["data"]["id"]]["isFreeVisit"] is True


@pytest.mark.asyncio
async def test_fee_comes_from_service_not_treatment(authed_client, treatment_payload, seed):
    """A price other than the list price still charges the service's fee."""
    await authed_client.post(
        "/api/treatments",
        json=treatment_payload(serviceId=seed.massage, price=65000),
    )

    today = (await _summary(authed_client))["today"]

    assert today["revenue"] == 65000
    assert today["therapistFees"] == 30000


@pytest.mark.asyncio
async def test_new_treatment_shows_up_immediately(authed_client, treatment_payload):
    created = await authed_client.post("/api/treatments", json=treatment_payload(price=100000))
    assert created.status_code == 201

    today = (await _summary(authed_client))["today"]

    assert today["revenue"] >= 100000
    assert today["treatments"] >= 1


@pytest.mark.asyncio
async def test_month_is_calendar_month_to_date(authed_client, treatment_payload):
    """Earlier this month counts; later this month and last month do not."""
    for when, price in [
        ("2026-03-01T09:00:00", 10000),
        (f"{DAY}T11:00:00", 20000),
        ("2026-03-20T11:00:00", 40000),
        ("2026-02-28T18:00:00", 80000),
    ]:
        resp = await authed_client.post("/api/treatments", json=treatment_payload(date=when, price=price))
        assert resp.status_code == 201

    data = await _summary(authed_client)

    assert data["today"]["treatments"] == 1
    assert data["today"]["revenue"] == 20000
    assert data["monthly"]["treatments"] == 2
    assert data["monthly"]["revenue"] == 30000
    assert data["monthly"]["therapistFees"] == 40000
    assert data["monthly"]["profit"] == -10000


@pytest.mark.asyncio
async def test_customer_and_system_counts(authed_client, database, seed):
    async with database.session() as session:
        await session.execute(
            text("UPDATE customers SET loyalty_visits = 3, total_visits = 3 WHERE id = :id"),
            {"id": seed.sari},
        )
        await session.execute(text("UPDATE therapists SET is_active = 0 WHERE id = :id"), {"id": seed.budi})

    data = await _summary(authed_client)

    assert data["customers"] == {"total": 1, "readyForFree": 1}
    assert data["system"] == {"activeServices": 2, "activeTherapists": 1}


@pytest.mark.asyncio
async def test_delete_removes_the_treatment_contribution(authed_client, treatment_payload, seed):
    keep = await authed_client.post("/api/treatments", json=treatment_payload(price=50000))
    drop = await authed_client.post(
        "/api/treatments",
        json=treatment_payload(serviceId=seed.massage, price=70000),
    )
    assert keep.status_code == drop.status_code == 201
    before = await _summary(authed_client)

    resp = await authed_client.delete(f"/api/treatments/{drop.json()['data']['id']}")
    assert resp.status_code == 200
    after = await _summary(authed_client)

    for period in ("today", "monthly"):
        assert after[period]["treatments"] == before[period]["treatments"] - 1
        assert after[period]["revenue"] == before[period]["revenue"] - 70000
        assert after[period]["therapistFees"] == before[period]["therapistFees"] - 30000
        assert after[period]["freeTreatments"] == before[period]["freeTreatments"]


@pytest.mark.asyncio
async def test_empty_day(authed_client, seed):
    data = await _summary(authed_client)
    assert data["today"]["treatments"] == 0
    assert data["today"]["treatmentsDetail"] == []
    assert data["monthly"]["revenue"] == 0


@pytest.mark.asyncio
async def test_malformed_date_is_rejected(authed_client):
    resp = await authed_client.get("/api/dashboard-summary", params={"date": "14/03/2026"})
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert resp.json()["error"] == "Invalid date"


@pytest.mark.asyncio
async def test_failed_read_fails_the_whole_summary(authed_client, database, seed):
    """No partial summary when one of the reads errors."""
    async with database.engine.begin() as conn:
        await conn.execute(text("DROP TABLE therapists"))

    resp = await authed_client.get("/api/dashboard-summary", params={"date": DAY})

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Database query failed"
    assert "therapists" in body["details"]
    assert "data" not in body


@pytest.mark.asyncio
async def test_requires_session(client):
    resp = await client.get("/api/dashboard-summary")
    assert resp.status_code == 401
    assert resp.json()["authenticated"] is False


@pytest.mark.asyncio
async def test_unconfigured_database_answers_with_envelope():
    """Without DATABASE_URL the endpoint degrades instead of crashing."""
    settings = Settings(_env_file=None, secret_key="test-secret-key", database_url=None, log_level="WARNING")
    app = create_app(settings)
    await startup(app, None)
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            public = await c.get("/api/services")
            feedback = await c.post(
                "/api/feedback",
                json={"customerName": "Sari", "customerPhone": "0812", "overallRating": 5},
            )
    finally:
        await shutdown(app)

    for resp in (public, feedback):
        assert resp.status_code == 200
        assert resp.json() == {"success": False, "error": "Database not configured"}
