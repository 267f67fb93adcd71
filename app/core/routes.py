# app/core/routes.py
# =============================================================================
# File: app/core/routes.py
# Description: Route registration for FastAPI application
# =============================================================================

import logging
from app.core.fastapi_types import FastAPI

from app.api.routers.message_router import router as message_router
from app.api.routers.conversation_router import router as conversation_router
from app.api.routers.metrics_router import router as metrics_router
from app.config.app_config import get_app_config

from app.core.health import register_health_endpoints

logger = logging.getLogger("message_service.routes")


def setup_routes(app: FastAPI) -> None:
    """Register all routers with the FastAPI application"""

    register_core_routers(app)

    # Unversioned system endpoints
    app.include_router(metrics_router)
    register_health_endpoints(app)


def register_core_routers(app: FastAPI) -> None:
    """Register versioned API routers"""
    prefix = get_app_config().api_prefix

    app.include_router(message_router, prefix=prefix)
    app.include_router(conversation_router, prefix=prefix)

    logger.info(f"API routers registered under {prefix}")
