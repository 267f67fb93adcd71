# app/core/middleware.py
# =============================================================================
# File: app/core/middleware.py
# Description: Middleware configuration for FastAPI application
# Request flow (outermost first): CORS -> request logging -> rate limiting
# =============================================================================

import json
import logging
import time
from typing import Any, Optional

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from starlette import status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.config.app_config import get_app_config
from app.config.reliability_config import RateLimiterConfig
from app.core.exceptions import CORRELATION_HEADER, error_response
from app.core.fastapi_types import FastAPI
from app.infra.metrics.message_metrics import http_requests_throttled_total
from app.infra.reliability.rate_limiter import RateLimiter
from app.utils.uuid_utils import generate_uuid_str

logger = logging.getLogger("message_service.middleware")
http_log = logging.getLogger("message_service.http")

REQUEST_ID_HEADER = "x-request-id"
REDACTED = "[REDACTED]"
SENSITIVE_FIELDS = frozenset({
    "password",
    "token",
    "apikey",
    "api_key",
    "secret",
    "authorization",
    "credential",
    "userpassword",
    "user_password",
})


def redact(value: Any) -> Any:
    """Replace values of sensitive keys (case-insensitive) at any depth."""
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_FIELDS else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact(item) for item in value]
    return value


def resolve_correlation_id(request: Request) -> str:
    return (
        request.headers.get(CORRELATION_HEADER)
        or request.headers.get(REQUEST_ID_HEADER)
        or generate_uuid_str()
    )


def setup_middleware(app: FastAPI, rate_limiter: Optional[RateLimiter] = None) -> None:
    """Configure all middleware for the FastAPI application"""

    # Added innermost first
    setup_rate_limiting(app, rate_limiter)
    setup_request_logging(app)
    setup_cors(app)


def setup_cors(app: FastAPI) -> None:
    """Configure CORS middleware"""
    allowed_origins = get_app_config().get_cors_origins()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
        max_age=3600,
    )

    logger.info(f"CORS configured with allowed origins: {allowed_origins}")


def setup_request_logging(app: FastAPI) -> None:
    app.add_middleware(RequestLoggingMiddleware)


def setup_rate_limiting(app: FastAPI, rate_limiter: Optional[RateLimiter] = None) -> None:
    limiter = rate_limiter or RateLimiter(name="http", config=RateLimiterConfig())
    if not limiter.enabled:
        logger.info("Rate limiting disabled")
        return
    app.add_middleware(RateLimitMiddleware, limiter=limiter)
    logger.info(f"Rate limiting: {limiter.config.limit} requests per {limiter.config.ttl}s")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns the correlation id and logs each request/response pair."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = resolve_correlation_id(request)
        request.state.correlation_id = correlation_id
        start = time.perf_counter()

        http_log.debug(
            f"Request: {request.method} {request.url.path} - "
            f"{request.headers.get('user-agent', '')} "
            f"{request.client.host if request.client else '-'} {correlation_id}"
        )
        if request.method in ("POST", "PUT", "PATCH"):
            await self._log_body(request, correlation_id)

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers[CORRELATION_HEADER] = correlation_id
        size = response.headers.get("content-length", "-")
        line = (f"Response: {request.method} {request.url.path} {response.status_code} "
                f"{size}b {elapsed_ms:.1f}ms {correlation_id}")

        if response.status_code >= 500:
            http_log.error(line)
        elif response.status_code >= 400:
            http_log.warning(line)
        else:
            http_log.info(line)

        return response

    @staticmethod
    async def _log_body(request: Request, correlation_id: str) -> None:
        if not http_log.isEnabledFor(logging.DEBUG):
            return
        body = await request.body()
        if not body:
            return
        try:
            payload = redact(json.loads(body))
        except (UnicodeDecodeError, json.JSONDecodeError):
            payload = f"<{len(body)} bytes>"
        http_log.debug(f"Request body [{correlation_id}]: {payload}")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Global fixed-window limiter; system endpoints are never counted."""

    def __init__(self, app, limiter: RateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self.limiter.is_exempt(request.url.path) or request.method == "OPTIONS":
            return await call_next(request)

        if not await self.limiter.acquire():
            http_requests_throttled_total.inc()
            return error_response(
                request,
                status.HTTP_429_TOO_MANY_REQUESTS,
                "ThrottlerException: Too Many Requests",
                headers={"Retry-After": str(self.limiter.retry_after())},
            )

        return await call_next(request)
