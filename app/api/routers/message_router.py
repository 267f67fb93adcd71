# =============================================================================
# File: app/api/routers/message_router.py
# Description: Message CRUD endpoints
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from app.api.dependencies.service_deps import get_message_service, get_tenant_context
from app.api.models.message_api_models import (
    CreateMessageRequest,
    DataResponse,
    MessageResponse,
    UpdateMessageRequest,
)
from app.message.exceptions import MessageNotFoundError
from app.security.auth_guard import require_bearer_token
from app.security.tenant_context import TenantContext
from app.services.application.message_service import MessageApplicationService

log = logging.getLogger("message_service.api.messages")

router = APIRouter(
    prefix="/messages",
    tags=["messages"],
    # tenant is checked before the token
    dependencies=[Depends(get_tenant_context), Depends(require_bearer_token)],
)


@router.post("", response_model=DataResponse[MessageResponse], status_code=status.HTTP_201_CREATED)
async def create_message(
        body: CreateMessageRequest,
        tenant: TenantContext = Depends(get_tenant_context),
        service: MessageApplicationService = Depends(get_message_service),
):
    message = await service.create_message(
        tenant,
        conversation_id=body.conversation_id,
        sender_id=body.sender_id,
        content=body.content,
        metadata=body.metadata,
    )
    return DataResponse[MessageResponse](status=status.HTTP_201_CREATED, data=MessageResponse.from_entity(message))


@router.get("/{message_id}", response_model=DataResponse[MessageResponse])
async def get_message(
        message_id: str,
        tenant: TenantContext = Depends(get_tenant_context),
        service: MessageApplicationService = Depends(get_message_service),
):
    message = await service.get_message_by_id(tenant, message_id)
    if message is None:
        raise MessageNotFoundError(message_id)
    return DataResponse[MessageResponse](status=status.HTTP_200_OK, data=MessageResponse.from_entity(message))


@router.put("/{message_id}", response_model=DataResponse[MessageResponse])
async def update_message(
        message_id: str,
        body: UpdateMessageRequest,
        tenant: TenantContext = Depends(get_tenant_context),
        service: MessageApplicationService = Depends(get_message_service),
):
    message = await service.update_message(
        tenant,
        message_id,
        content=body.content,
        metadata=body.metadata,
    )
    if message is None:
        raise MessageNotFoundError(message_id)
    return DataResponse[MessageResponse](status=status.HTTP_200_OK, data=MessageResponse.from_entity(message))


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
        message_id: str,
        tenant: TenantContext = Depends(get_tenant_context),
        service: MessageApplicationService = Depends(get_message_service),
):
    if not await service.delete_message(tenant, message_id):
        raise MessageNotFoundError(message_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
