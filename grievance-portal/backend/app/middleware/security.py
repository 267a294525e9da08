"""
Security middleware for the portal API.

Implements:
- Security headers
- Request size limits
- Request logging (credential headers never logged)
- Authentication via the X-Portal-Key header
"""

import logging
import secrets
import time
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Portal-Key"

# Paths reachable without the API key
PUBLIC_PATHS = {"/", "/health", "/docs", "/openapi.json", "/redoc"}


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies larger than ``max_size`` bytes."""

    def __init__(self, app, max_size: int = 2 * 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")

        if content_length and content_length.isdigit() and int(content_length) > self.max_size:
            logger.warning(
                f"Request size {content_length} exceeds limit {self.max_size} "
                f"from {_client_host(request)}"
            )
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={
                    "detail": f"Request body too large. Maximum size: {self.max_size} bytes"
                }
            )

        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log method, path, status and duration of every API request.

    Only the method, path and client host are logged from the request;
    headers (and with them the portal key) never are.
    """

    SKIP_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        method = request.method
        path = request.url.path

        if path in self.SKIP_PATHS:
            return await call_next(request)

        logger.info(f"Request: {method} {path} from {_client_host(request)}")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Error: {method} {path} -> {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Response: {method} {path} -> {response.status_code} ({duration_ms:.2f}ms)"
        )
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """
    Shared-key authentication for ``/api/*`` via the X-Portal-Key header.

    Keys are compared in constant time.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path

        if path in PUBLIC_PATHS or not path.startswith("/api/") or request.method == "OPTIONS":
            return await call_next(request)

        provided_key = request.headers.get(API_KEY_HEADER)

        if not provided_key:
            logger.warning(f"Missing {API_KEY_HEADER} header from {_client_host(request)}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Authentication required"},
                headers={"WWW-Authenticate": API_KEY_HEADER},
            )

        if not secrets.compare_digest(provided_key.encode(), settings.PORTAL_API_KEY.encode()):
            logger.warning(f"Invalid {API_KEY_HEADER} from {_client_host(request)}")
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={"detail": "Invalid credentials"},
            )

        return await call_next(request)
