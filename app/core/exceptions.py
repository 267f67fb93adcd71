# app/core/exceptions.py
# =============================================================================
# File: app/core/exceptions.py
# Description: Exception handlers for FastAPI application
# Every error response shares one body:
#   {status, message, error, timestamp, path, correlationId?}
# =============================================================================

import logging
from http import HTTPStatus
from typing import Any, Dict, List, Optional, Union

from fastapi import Request
from app.core.fastapi_types import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from app.common.exceptions.exceptions import (
    AuthenticationError,
    InfrastructureError,
    MessageServiceException,
    NotFoundError,
    RateLimitExceededError,
    TenantRequiredError,
    ValidationError,
)
from app.config.app_config import get_app_config
from app.utils.datetime_utils import utc_now_iso

logger = logging.getLogger("message_service.exceptions")

CORRELATION_HEADER = "x-correlation-id"

# Checked in order; first match wins
EXCEPTION_STATUS_MAP = (
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (TenantRequiredError, status.HTTP_403_FORBIDDEN),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (RateLimitExceededError, status.HTTP_429_TOO_MANY_REQUESTS),
    (InfrastructureError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def build_error_body(
        request: Request,
        status_code: int,
        message: Union[str, List[str]],
        error: Optional[str] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "status": status_code,
        "message": message,
        "error": error or reason_phrase(status_code),
        "timestamp": utc_now_iso(),
        "path": request.url.path,
    }
    correlation_id = request.headers.get(CORRELATION_HEADER)
    if correlation_id:
        body["correlationId"] = correlation_id
    return body


def error_response(
        request: Request,
        status_code: int,
        message: Union[str, List[str]],
        error: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {status_code}: {message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {status_code}: {message}")

    return JSONResponse(
        status_code=status_code,
        content=build_error_body(request, status_code, message, error),
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""

    app.add_exception_handler(MessageServiceException, service_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")


def status_for(exc: MessageServiceException) -> int:
    for exc_type, status_code in EXCEPTION_STATUS_MAP:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def service_exception_handler(request: Request, exc: MessageServiceException) -> JSONResponse:
    """Map the service exception hierarchy onto HTTP status codes"""
    status_code = status_for(exc)
    message = str(exc) or reason_phrase(status_code)

    if status_code >= 500:
        logger.error(f"Service error on path {request.url.path}: {message}", exc_info=exc)
        if get_app_config().is_production:
            message = "Internal server error"

    return error_response(request, status_code, message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Raised HTTPException plus Starlette's own 404/405"""
    message = exc.detail if isinstance(exc.detail, (str, list)) else str(exc.detail)
    return error_response(request, exc.status_code, message, headers=getattr(exc, "headers", None))


def format_validation_errors(exc: RequestValidationError) -> List[str]:
    """One 'location: message' entry per failing field, e.g. 'body.content: Field required'."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg', 'Invalid value')}" if location else error.get("msg", ""))
    return messages


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors"""
    return error_response(request, status.HTTP_400_BAD_REQUEST, format_validation_errors(exc))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general unhandled exceptions"""
    logger.error(f"Unhandled exception on path {request.url.path}: {str(exc)}", exc_info=True)

    if get_app_config().is_production:
        message = "Internal server error"
    else:
        message = str(exc) or "Internal server error"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=build_error_body(request, status.HTTP_500_INTERNAL_SERVER_ERROR, message, type(exc).__name__),
    )
