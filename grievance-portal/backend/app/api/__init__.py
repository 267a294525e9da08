"""
API endpoints module.
"""

from app.api import issues, analytics, feedback, users, export, tasks
from app.api.errors import register_exception_handlers
from app.api.router import api_router

__all__ = [
    "issues",
    "analytics",
    "feedback",
    "users",
    "export",
    "tasks",
    "api_router",
    "register_exception_handlers",
]
