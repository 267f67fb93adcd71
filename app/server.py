# app/server.py
# =============================================================================
# File: app/server.py
# Description: Main FastAPI application entry point
# =============================================================================

from __future__ import annotations

import os
import logging
from typing import Any, Callable, Optional

from app.core.fastapi_types import FastAPI

from app.core import __version__
from app.core.lifespan import lifespan
from app.core.middleware import setup_middleware
from app.core.routes import setup_routes
from app.core.exceptions import setup_exception_handlers
from app.config.app_config import get_app_config
from app.config.logging_config import setup_logging
from app.infra.reliability.rate_limiter import RateLimiter

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
setup_logging(
    service_name="api",
    log_file=os.getenv("LOG_FILE") if os.getenv("LOG_FILE") else None,
    enable_json=os.getenv("ENVIRONMENT") == "production",
    service_type="api"
)

logger = logging.getLogger("message_service.server")


# =============================================================================
# FASTAPI APP
# =============================================================================
def create_app(
        lifespan_handler: Optional[Callable[[FastAPI], Any]] = lifespan,
        rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Build the application.

    Tests pass lifespan_handler=None and populate app.state themselves.
    """
    application = FastAPI(
        title=f"Message Service v{__version__}",
        version=__version__,
        lifespan=lifespan_handler,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    setup_middleware(application, rate_limiter)
    setup_routes(application)
    setup_exception_handlers(application)

    return application


app = create_app()

__all__ = ["app", "create_app", "__version__"]

# =============================================================================
# Development entry point
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    config = get_app_config()
    reload = os.getenv("RELOAD", "false").lower() == "true"

    logger.info(f"Starting Message Service on {config.host}:{config.port} (reload={reload})")

    uvicorn.run(
        "app.server:app",
        host=config.host,
        port=config.port,
        reload=reload,
        log_config=None,
    )
