"""
JunkHub Backend — Chat Route Handlers
=======================================

What:  Order conversations, mounted twice with the same shape:
           /api/chats         customer side (user role)
           /api/owner/chats   shop side (owner role)
How:   `build_chat_router` binds a side and its gate to one set of handlers.
       `/unread/count` and `/order/{order_id}` are declared before the
       `/{chat_id}/...` routes.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_owner, require_user
from app.database import get_db_session
from app.models.enums import SenderType
from app.schemas.common import ErrorResponse
from app.schemas.messaging import (
    ChatEnvelope,
    ChatListResponse,
    MessageEnvelope,
    MessageListResponse,
    SendMessageRequest,
    UnreadCountResponse,
)
from app.services.chat_service import DEFAULT_MESSAGE_LIMIT, chat_service

logger = logging.getLogger(__name__)

_PARTICIPANT_RESPONSES = {
    403: {"description": "Caller is not a participant", "model": ErrorResponse},
    404: {"description": "Chat not found", "model": ErrorResponse},
}


def build_chat_router(prefix: str, side: SenderType, gate) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=["Chats"])

    @router.get("", response_model=ChatListResponse, summary="Conversations, most recent first")
    async def list_chats(principal=Depends(gate), db: AsyncSession = Depends(get_db_session)) -> ChatListResponse:
        return ChatListResponse(chats=await chat_service.list_chats(db, side, principal.id))

    @router.get("/unread/count", response_model=UnreadCountResponse, summary="Unread messages across chats")
    async def unread_count(principal=Depends(gate), db: AsyncSession = Depends(get_db_session)) -> UnreadCountResponse:
        return UnreadCountResponse(unread_count=await chat_service.unread_count(db, side, principal.id))

    @router.get(
        "/order/{order_id}",
        response_model=ChatEnvelope,
        responses={
            400: {"description": "Order has no shop owner to talk to", "model": ErrorResponse},
            403: {"description": "Caller is not a party to the order", "model": ErrorResponse},
            404: {"description": "Order not found", "model": ErrorResponse},
        },
        summary="Open (or create) the chat of an order",
    )
    async def chat_for_order(
        order_id: uuid.UUID,
        principal=Depends(gate),
        db: AsyncSession = Depends(get_db_session),
    ) -> ChatEnvelope:
        return ChatEnvelope(chat=await chat_service.get_or_create_for_order(db, side, principal.id, order_id))

    @router.get(
        "/{chat_id}/messages",
        response_model=MessageListResponse,
        responses=_PARTICIPANT_RESPONSES,
        summary="Messages, oldest first; marks the other side's messages read",
    )
    async def list_messages(
        chat_id: uuid.UUID,
        limit: int = Query(default=DEFAULT_MESSAGE_LIMIT, ge=1, le=200),
        before: Optional[datetime] = Query(default=None, description="Only messages older than this instant"),
        principal=Depends(gate),
        db: AsyncSession = Depends(get_db_session),
    ) -> MessageListResponse:
        messages = await chat_service.list_messages(db, side, principal.id, chat_id, limit=limit, before=before)
        return MessageListResponse(messages=messages)

    @router.post(
        "/{chat_id}/messages",
        response_model=MessageEnvelope,
        status_code=status.HTTP_201_CREATED,
        responses=_PARTICIPANT_RESPONSES,
        summary="Post a message",
    )
    async def send_message(
        chat_id: uuid.UUID,
        body: SendMessageRequest,
        principal=Depends(gate),
        db: AsyncSession = Depends(get_db_session),
    ) -> MessageEnvelope:
        message = await chat_service.send_message(db, side, principal.id, chat_id, body.content)
        return MessageEnvelope(message=message)

    return router


user_chats_router = build_chat_router("/api/chats", SenderType.USER, require_user)
owner_chats_router = build_chat_router("/api/owner/chats", SenderType.OWNER, require_owner)
