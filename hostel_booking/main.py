from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from hostel_booking.api.v1.router import router as api_v1_router
from hostel_booking.config.database import SessionLocal, init_db
from hostel_booking.config.logging import setup_logging
from hostel_booking.config.settings import settings
from hostel_booking.core.error_handling import register_exception_handlers
from hostel_booking.services.background.booking_expiry_service import (
    BookingExpiryService,
    ExpirySweeper,
)
from hostel_booking.services.booking.booking_lifecycle_service import BookingLifecycleService


def create_app(
    booking_service: Optional[BookingLifecycleService] = None,
    run_expiry_sweeper: bool = False,
) -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers the application exception handlers.
    - Includes the versioned API router under /api/v1.
    - Optionally runs the booking expiry sweeper in the background.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.booking_service = booking_service or BookingLifecycleService(SessionLocal)
    app.state.expiry_sweeper = None

    register_exception_handlers(app)
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    @app.on_event("startup")
    def on_startup() -> None:
        if not settings.is_production():
            # For dev/demo only; production schemas are migrated
            init_db()
        if run_expiry_sweeper:
            sweeper = ExpirySweeper(BookingExpiryService(app.state.booking_service))
            sweeper.start()
            app.state.expiry_sweeper = sweeper

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        if app.state.expiry_sweeper is not None:
            app.state.expiry_sweeper.stop(timeout=5)

    return app


def build_app() -> FastAPI:
    """Entry point for `uvicorn --factory hostel_booking.main:build_app`."""
    setup_logging()
    return create_app(run_expiry_sweeper=True)
