# backend/mentorbook/main.py
"""
FastAPI application for the mentorship booking service.

Run with ``uvicorn mentorbook.main:app`` from the ``backend`` directory.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from .core.config import is_running_tests, settings
from .errors import register_error_handlers
from .routes.v1 import (
    availability as availability_v1,
    bookings as bookings_v1,
    feedback as feedback_v1,
    health as health_v1,
    offerings as offerings_v1,
    payments as payments_v1,
    prometheus as prometheus_v1,
)
from .services.notification_service import get_event_publisher

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

API_TITLE = "Mentorbook API"
API_DESCRIPTION = "Booking lifecycle for a mentorship marketplace"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    if settings.is_sqlite and settings.environment == "production":
        logger.warning("SQLite in production: slot conflicts rely on the application check only")

    publisher = get_event_publisher()
    logger.info(f"Notification listeners registered: {len(publisher.listeners())}")

    yield

    logger.info(f"{API_TITLE} shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=health_v1.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

register_error_handlers(app)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(feedback_v1.router, prefix="/feedback")
api_v1.include_router(availability_v1.router, prefix="/availability")
api_v1.include_router(offerings_v1.router, prefix="/offerings")
api_v1.include_router(payments_v1.router, prefix="/payments")

app.include_router(api_v1)
app.include_router(health_v1.router)
app.include_router(prometheus_v1.router)
