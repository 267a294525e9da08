"""
Main API router aggregating all endpoint modules.
"""

from fastapi import APIRouter

from app.api import issues, analytics, feedback, users, export, tasks

# Create main API router with /api prefix
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(issues.router)
api_router.include_router(analytics.router)
api_router.include_router(feedback.router)
api_router.include_router(users.router)
api_router.include_router(export.router)
api_router.include_router(tasks.router)
