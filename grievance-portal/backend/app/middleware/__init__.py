"""
Middleware module for FastAPI application.

Exports all middleware classes for easy import.
"""

from app.middleware.security import (
    API_KEY_HEADER,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
    RequestLoggingMiddleware,
    AuthenticationMiddleware,
)

__all__ = [
    "API_KEY_HEADER",
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "RequestLoggingMiddleware",
    "AuthenticationMiddleware",
]
