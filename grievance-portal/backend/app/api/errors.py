"""
Mapping of lifecycle service errors to HTTP responses.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.services.errors import (
    DataIntegrityError,
    EmptyContent,
    FeedbackNotAllowed,
    InvalidClassification,
    InvalidFeedback,
    InvalidPriority,
    InvalidTransition,
    IssueClosed,
    IssueServiceError,
    NotFound,
    StoreUnavailable,
    UnknownAssignee,
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidTransition: status.HTTP_409_CONFLICT,
    IssueClosed: status.HTTP_409_CONFLICT,
    UnknownAssignee: status.HTTP_422_UNPROCESSABLE_ENTITY,
    EmptyContent: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidClassification: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidPriority: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidFeedback: status.HTTP_422_UNPROCESSABLE_ENTITY,
    FeedbackNotAllowed: status.HTTP_403_FORBIDDEN,
    DataIntegrityError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code_for(exc: IssueServiceError) -> int:
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def issue_service_error_handler(request: Request, exc: IssueServiceError) -> JSONResponse:
    code = status_code_for(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")

    content = {"error": type(exc).__name__, "detail": str(exc)}
    if isinstance(exc, InvalidTransition):
        content["current_status"] = exc.current
        content["requested_status"] = exc.requested

    return JSONResponse(status_code=code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IssueServiceError, issue_service_error_handler)
