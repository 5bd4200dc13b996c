"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the repository and services, registers routers, and runs startup
initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from campus_booking.controllers.auth_controller import router as auth_router
from campus_booking.controllers.booking_controller import router as booking_router
from campus_booking.controllers.dashboard_controller import router as dashboard_router
from campus_booking.controllers.room_controller import router as room_router
from campus_booking.repository.booking_repository import BookingRepository
from campus_booking.services.auth_service import AuthService
from campus_booking.services.booking_scheduler import BookingScheduler
from campus_booking.services.statistics_service import BookingStatisticsService
from campus_booking.utils.config import Settings, get_settings
from campus_booking.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services are instantiated here and exposed through app.state; controllers
    resolve them with FastAPI dependencies.
    """
    settings = settings or get_settings()

    # --- Repository (SQLite connection factory) ---
    repository = BookingRepository(settings)

    # --- Services ---
    booking_scheduler = BookingScheduler(repository=repository, settings=settings)
    statistics_service = BookingStatisticsService(repository=repository, settings=settings)
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, settings)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(auth_router)
    app.include_router(booking_router)
    app.include_router(room_router)
    app.include_router(dashboard_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.repository = repository
    app.state.booking_scheduler = booking_scheduler
    app.state.statistics_service = statistics_service
    app.state.auth_service = auth_service

    return app


def _startup(app: FastAPI, settings: Settings) -> None:
    """Idempotent startup sequence. Safe to re-run on server restarts."""
    repository: BookingRepository = app.state.repository
    scheduler: BookingScheduler = app.state.booking_scheduler

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_demo_bookings:
        logger.info("Startup: seeding demo bookings (skipped if Bookings table not empty)")
        repository.seed_demo_bookings_if_empty(scheduler.today())

    if not settings.admin_access_code:
        logger.warning("ADMIN_TOKEN is not set; admin login is disabled")
    if not settings.class_rep_access_code:
        logger.warning("CLASS_REP_ACCESS_CODE is not set; class representative login is disabled")
    if not settings.student_access_code:
        logger.warning("STUDENT_ACCESS_CODE is not set; student login is disabled")

    logger.info("Startup complete, system ready")


# Module-level app object for uvicorn
app = create_app()
