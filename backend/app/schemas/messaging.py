"""
JunkHub Backend — Chat and Notification Schemas
=================================================
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import StringConstraints

from app.models.enums import SenderType
from app.schemas.common import CamelModel


# ── Chats ─────────────────────────────────────────────────────────────────

class MessageOut(CamelModel):
    id: uuid.UUID
    chat_id: uuid.UUID
    sender_type: SenderType
    sender_id: uuid.UUID
    content: str
    is_read: bool
    created_at: datetime


class ChatParticipant(CamelModel):
    id: uuid.UUID
    name: str
    profile_pic: Optional[str] = None


class ChatOrderRef(CamelModel):
    id: uuid.UUID
    total: float
    status: str
    created_at: datetime


class ChatOut(CamelModel):
    id: uuid.UUID
    order_id: uuid.UUID
    user_id: uuid.UUID
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    user: Optional[ChatParticipant] = None
    owner: Optional[ChatParticipant] = None
    order: Optional[ChatOrderRef] = None
    last_message: Optional[MessageOut] = None
    unread_count: int = 0


class ChatEnvelope(CamelModel):
    chat: ChatOut


class ChatListResponse(CamelModel):
    chats: List[ChatOut]


class MessageListResponse(CamelModel):
    messages: List[MessageOut]


class MessageEnvelope(CamelModel):
    message: MessageOut


class SendMessageRequest(CamelModel):
    content: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=5000)]


# ── Notifications ─────────────────────────────────────────────────────────

class NotificationOut(CamelModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: datetime


class NotificationListResponse(CamelModel):
    notifications: List[NotificationOut]
    unread_count: int


class NotificationEnvelope(CamelModel):
    notification: NotificationOut


class UnreadCountResponse(CamelModel):
    unread_count: int
