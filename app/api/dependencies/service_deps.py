# app/api/dependencies/service_deps.py
# =============================================================================
# File: app/api/dependencies/service_deps.py
# Description: FastAPI dependencies for application services and tenant context
# =============================================================================

from typing import Optional
from fastapi import Header, Request

from app.common.exceptions.exceptions import TenantRequiredError
from app.config.logging_config import get_logger
from app.security.tenant_context import TenantContext
from app.services.application.message_service import MessageApplicationService
from app.services.application.search_service import SearchApplicationService

log = get_logger("message_service.api.dependencies.services")


def get_message_service(request: Request) -> MessageApplicationService:
    """
    Get the message service from app state.

    Raises:
        RuntimeError: If the lifespan did not initialize it
    """
    service: Optional[MessageApplicationService] = getattr(request.app.state, "message_service", None)
    if service is None:
        raise RuntimeError("Message service not configured")
    return service


def get_search_service(request: Request) -> SearchApplicationService:
    service: Optional[SearchApplicationService] = getattr(request.app.state, "search_service", None)
    if service is None:
        raise RuntimeError("Search service not configured")
    return service


async def get_tenant_context(
        x_tenant_id: Optional[str] = Header(default=None, alias="x-tenant-id"),
) -> TenantContext:
    """
    Build the per-request TenantContext from the x-tenant-id header.

    Raises:
        TenantRequiredError: header absent or blank (403)
    """
    tenant = TenantContext.from_header(x_tenant_id)
    if not tenant.has_tenant:
        raise TenantRequiredError()
    return tenant
