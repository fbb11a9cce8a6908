"""
Pytest configuration and fixtures.

Each test gets its own SQLite file, a fully wired application (database,
auth component, event bus and consumer) and seed catalogue data.
"""

import os
from types import SimpleNamespace
from typing import AsyncGenerator

# Module-level app in salon.app.main reads settings on import
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from salon.app.core.config import Settings
from salon.app.core.database import Database
from salon.app.main import create_app, shutdown, startup
from salon.app.models import (
    CustomerORM,
    FeedbackORM,
    ServiceORM,
    TherapistORM,
    TreatmentORM,
)

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-pass-123"
TEST_DAY = "2026-03-14"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        secret_key="test-secret-key",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'salon.db'}",
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        admin_name="Salon Owner",
        log_level="WARNING",
    )


@pytest.fixture
async def app(settings: Settings) -> AsyncGenerator[FastAPI, None]:
    """Application with startup run by hand; ASGITransport skips lifespan."""
    application = create_app(settings)
    await startup(application, Database.from_settings(settings))
    yield application
    await shutdown(application)


@pytest.fixture
def database(app: FastAPI) -> Database:
    return app.state.database


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session_factory() as session:
        yield session


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
async def authed_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client holding the session cookie of the seeded admin."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        response = await c.post(
            "/api/auth/login",
            json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
        )
        assert response.status_code == 200, response.text
        yield c


@pytest.fixture
async def seed(database: Database) -> SimpleNamespace:
    """Two services, two therapists and one registered customer."""
    async with database.session() as session:
        facial = ServiceORM(
            name="Facial Glow", category="facial", normal_price=50000,
            duration=60, therapist_fee=20000,
        )
        massage = ServiceORM(
            name="Back Massage", category="massage", normal_price=80000,
            promo_price=70000, duration=90, therapist_fee=30000,
        )
        ani = TherapistORM(
            initial="A", full_name="Ani Lestari",
            base_fee_per_treatment=10000, commission_rate=0.1,
        )
        budi = TherapistORM(
            initial="B", full_name="Budi Santoso",
            base_fee_per_treatment=5000, commission_rate=0.15,
        )
        sari = CustomerORM(name="Sari Dewi", phone="081234567890")
        session.add_all([facial, massage, ani, budi, sari])
        await session.flush()

        return SimpleNamespace(
            facial=facial.id,
            massage=massage.id,
            ani=ani.id,
            budi=budi.id,
            sari=sari.id,
            sari_name=sari.name,
            sari_phone=sari.phone,
        )


@pytest.fixture
def treatment_payload(seed: SimpleNamespace):
    """Build a POST /api/treatments body; keyword overrides win."""

    def build(**overrides) -> dict:
        body = {
            "date": f"{TEST_DAY}T10:00:00",
            "customerName": seed.sari_name,
            "customerId": seed.sari,
            "serviceId": seed.facial,
            "therapistId": seed.ani,
            "price": 50000,
            "tipAmount": 5000,
            "paymentMethod": "cash",
            "isFreeVisit": False,
        }
        body.update(overrides)
        return body

    return build


@pytest.fixture
def reload(database: Database):
    """Fetch a fresh copy of a row in a new session."""

    async def fetch(model, pk):
        async with database.session_factory() as session:
            return await session.get(model, pk)

    return fetch


@pytest.fixture
def snapshot(database: Database, seed: SimpleNamespace):
    """Counters and row counts that treatment mutations touch."""

    async def take() -> dict:
        async with database.session_factory() as session:
            customer = await session.get(CustomerORM, seed.sari)
            facial = await session.get(ServiceORM, seed.facial)
            ani = await session.get(TherapistORM, seed.ani)
            treatments = (await session.execute(select(func.count(TreatmentORM.id)))).scalar()
            feedback = (await session.execute(select(func.count(FeedbackORM.id)))).scalar()
            return {
                "customer_visits": customer.total_visits,
                "customer_spending": customer.total_spending,
                "service_popularity": facial.popularity,
                "therapist_treatments": ani.total_treatments,
                "therapist_earnings": ani.total_earnings,
                "treatments": treatments,
                "feedback": feedback,
            }

    return take
