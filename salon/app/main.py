"""
Salon Manager

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from salon.app.api import (
    auth,
    bookkeeping,
    customers,
    dashboard,
    feedback,
    health,
    reports,
    services,
    therapists,
    treatments,
)
from salon.app.api.envelope import register_exception_handlers
from salon.app.core.config import Settings, get_settings
from salon.app.core.database import Database
from salon.app.core.logging import setup_logging, get_logger
from salon.app.core.security import Role, require_role
from salon.app.events.bus import EventBus
from salon.app.middleware.security_headers import SecurityHeadersMiddleware
from salon.app.middleware.trace import TracingMiddleware
from salon.app.services.auth_service import AuthService, seed_admin
from salon.app.services.loyalty_service import LoyaltyUpdater
from salon.app.workers.consumer import start_event_consumer, stop_event_consumer
from salon.app.workers.handlers import build_dispatcher

logger = get_logger(__name__)


async def startup(app: FastAPI, database: Optional[Database]) -> None:
    """Attach the database, auth component, event bus and consumer to the app."""
    settings: Settings = app.state.settings

    app.state.database = database
    app.state.auth_service = AuthService(settings)
    app.state.event_bus = EventBus(maxsize=settings.event_bus_maxsize)
    app.state.consumer_task = None

    if database is None:
        return

    if settings.create_tables_on_startup:
        await database.create_all()
    async with database.session() as session:
        await seed_admin(session, settings)

    dispatcher = build_dispatcher(database, LoyaltyUpdater(settings.loyalty_threshold))
    app.state.consumer_task = start_event_consumer(app.state.event_bus, dispatcher)


async def shutdown(app: FastAPI) -> None:
    consumer_task = getattr(app.state, "consumer_task", None)
    if consumer_task is not None:
        await stop_event_consumer(consumer_task)

    database = getattr(app.state, "database", None)
    if database is not None:
        await database.dispose()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    await startup(app, Database.from_settings(settings))

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await shutdown(app)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Point-of-sale, loyalty and reporting backend for a salon",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_exception_handlers(app)

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(TracingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
    )

    admin_only = [Depends(require_role(Role.ADMIN))]
    prefix = settings.api_prefix

    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Authentication"])
    app.include_router(feedback.router, prefix=f"{prefix}/feedback", tags=["Feedback"])
    app.include_router(services.router, prefix=f"{prefix}/services", tags=["Services"])
    app.include_router(
        dashboard.router,
        prefix=prefix,
        tags=["Dashboard"],
        dependencies=admin_only,
    )
    app.include_router(
        reports.router,
        prefix=f"{prefix}/reports",
        tags=["Reports"],
        dependencies=admin_only,
    )
    app.include_router(
        treatments.router,
        prefix=f"{prefix}/treatments",
        tags=["Treatments"],
        dependencies=admin_only,
    )
    app.include_router(
        customers.router,
        prefix=f"{prefix}/customers",
        tags=["Customers"],
        dependencies=admin_only,
    )
    app.include_router(
        therapists.router,
        prefix=f"{prefix}/therapists",
        tags=["Therapists"],
        dependencies=admin_only,
    )
    app.include_router(
        bookkeeping.router,
        prefix=f"{prefix}/monthly-bookkeeping",
        tags=["Monthly Bookkeeping"],
        dependencies=admin_only,
    )

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
        }

    return app


app = create_app()
