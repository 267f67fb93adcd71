# =============================================================================
# File: app/api/routers/conversation_router.py
# Description: Conversation listing and full-text search endpoints
# =============================================================================

from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies.service_deps import (
    get_message_service,
    get_search_service,
    get_tenant_context,
)
from app.api.models.message_api_models import DataResponse, PaginatedMessagesResponse
from app.message.pagination import DEFAULT_LIMIT, DEFAULT_PAGE
from app.security.auth_guard import require_bearer_token
from app.security.tenant_context import TenantContext
from app.services.application.message_service import MessageApplicationService
from app.services.application.search_service import SearchApplicationService

log = logging.getLogger("message_service.api.conversations")

router = APIRouter(
    prefix="/conversations",
    tags=["conversations"],
    dependencies=[Depends(get_tenant_context), Depends(require_bearer_token)],
)


@router.get("/{conversation_id}/messages", response_model=DataResponse[PaginatedMessagesResponse])
async def list_conversation_messages(
        conversation_id: str,
        page: int = Query(DEFAULT_PAGE),
        limit: int = Query(DEFAULT_LIMIT),
        sort_field: Optional[str] = Query(None, alias="sortField"),
        sort_direction: Optional[Literal["asc", "desc"]] = Query(None, alias="sortDirection"),
        tenant: TenantContext = Depends(get_tenant_context),
        service: MessageApplicationService = Depends(get_message_service),
):
    result = await service.get_messages_by_conversation(
        tenant, conversation_id, page, limit, sort_field, sort_direction
    )
    page_body = PaginatedMessagesResponse.from_result(result)
    return DataResponse[PaginatedMessagesResponse](status=status.HTTP_200_OK, data=page_body)


@router.get("/{conversation_id}/messages/search", response_model=DataResponse[PaginatedMessagesResponse])
async def search_conversation_messages(
        conversation_id: str,
        q: Optional[str] = Query(None, description="Search term"),
        page: int = Query(DEFAULT_PAGE),
        limit: int = Query(DEFAULT_LIMIT),
        tenant: TenantContext = Depends(get_tenant_context),
        service: SearchApplicationService = Depends(get_search_service),
):
    result = await service.search_messages(tenant, conversation_id, q or "", page, limit)
    page_body = PaginatedMessagesResponse.from_result(result)
    return DataResponse[PaginatedMessagesResponse](status=status.HTTP_200_OK, data=page_body)
