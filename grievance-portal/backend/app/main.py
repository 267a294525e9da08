"""
Grievance Portal API - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import close_db
from app.tasks import setup_scheduler, shutdown_scheduler
from app.middleware import (
    API_KEY_HEADER,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
    RequestLoggingMiddleware,
    AuthenticationMiddleware,
)
from app.api import api_router, register_exception_handlers

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for startup and shutdown events.

    Handles:
    - Background scheduler startup (when SCHEDULER_ENABLED)
    - Background scheduler shutdown and database connection cleanup
    """
    logger.info("Starting up Grievance Portal API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"CORS Origins: {settings.cors_origins_list}")

    if settings.SCHEDULER_ENABLED:
        setup_scheduler()
    else:
        logger.info("Background scheduler disabled")
    logger.info("Startup complete")

    yield

    logger.info("Shutting down Grievance Portal API...")
    if settings.SCHEDULER_ENABLED:
        shutdown_scheduler()
    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Grievance Portal API",
    description="Issue lifecycle, assignment, SLA and analytics service for the grievance portal",
    version="1.0.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# Middleware order matters - applied in reverse
# 1. Request logging (outermost - logs everything)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. Request size limiting
app.add_middleware(
    RequestSizeLimitMiddleware,
    max_size=settings.MAX_REQUEST_SIZE,
)

# 4. Authentication
app.add_middleware(AuthenticationMiddleware)

# 5. CORS
cors_origins = settings.cors_origins_list

if settings.ENVIRONMENT == "production" and "*" in cors_origins:
    logger.warning(
        "WARNING: CORS is set to allow all origins (*) in production. "
        "Set CORS_ORIGINS to specific origins."
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", API_KEY_HEADER, "X-Actor-Id", "X-Actor-Role"],
    max_age=600,  # Cache preflight requests for 10 minutes
)


@app.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Health status
    """
    return {
        "status": "healthy",
        "service": "grievance-portal-api",
        "environment": settings.ENVIRONMENT,
        "version": "1.0.0"
    }


@app.get("/")
async def root():
    return {
        "name": "Grievance Portal API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(api_router)
