"""
JunkHub Backend — Chat Service
================================

What:  Order-scoped conversations between a customer and a shop owner.
How:   One service serves both sides. `side` is the caller's SenderType; the
       other side's messages are the ones that count as unread and get
       marked read when the caller opens the conversation.
Who:   Called by the /api/chats (user) and /api/owner/chats (owner) handlers.

Rules:
    - An order has at most one chat, created on first access.
    - From the customer side, the chat's owner is the owner of the shop that
      supplied the order's first item.
    - From the owner side, the owner must supply at least one item of the
      order; an existing chat must already be theirs.
    - Only the two participants can read or post.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from app.auth.ownership import authorize_owner, load_owned
from app.database import as_utc, utcnow
from app.exceptions import InvalidStateError
from app.models import Chat, Message, Order, OrderItem, Owner, Product, User
from app.models.enums import SenderType
from app.schemas.messaging import ChatOrderRef, ChatOut, ChatParticipant, MessageOut
from app.services.order_service import order_owner_ids

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_LIMIT = 50


def _participant_column(side: SenderType):
    return Chat.user_id if side is SenderType.USER else Chat.owner_id


def _participant_of(side: SenderType):
    return (lambda chat: chat.user_id) if side is SenderType.USER else (lambda chat: chat.owner_id)


def _other(side: SenderType) -> SenderType:
    return SenderType.OWNER if side is SenderType.USER else SenderType.USER


def _user_ref(user: Optional[User]) -> Optional[ChatParticipant]:
    if user is None:
        return None
    return ChatParticipant(
        id=user.id,
        name=f"{user.first_name} {user.last_name}".strip(),
        profile_pic=user.profile_pic,
    )


def _owner_ref(owner: Optional[Owner]) -> Optional[ChatParticipant]:
    if owner is None:
        return None
    return ChatParticipant(id=owner.id, name=owner.business_name, profile_pic=owner.profile_pic)


def to_chat_out(chat: Chat, last_message: Optional[Message] = None, unread_count: int = 0) -> ChatOut:
    """Serializes a chat loaded with `chat_load_options()`."""
    return ChatOut(
        id=chat.id,
        order_id=chat.order_id,
        user_id=chat.user_id,
        owner_id=chat.owner_id,
        created_at=chat.created_at,
        updated_at=chat.updated_at,
        user=_user_ref(chat.user),
        owner=_owner_ref(chat.owner),
        order=ChatOrderRef.model_validate(chat.order) if chat.order is not None else None,
        last_message=MessageOut.model_validate(last_message) if last_message is not None else None,
        unread_count=unread_count,
    )


def chat_load_options():
    return (
        selectinload(Chat.user),
        selectinload(Chat.owner),
        selectinload(Chat.order),
    )


class ChatService:

    # ══════════════════════════════════════════════════════════════════════
    # Conversations
    # ══════════════════════════════════════════════════════════════════════

    async def list_chats(self, db: AsyncSession, side: SenderType, account_id: uuid.UUID) -> List[ChatOut]:
        """The caller's chats, most recently active first, with last message and unread count."""
        chats = list(
            (
                await db.execute(
                    select(Chat)
                    .where(_participant_column(side) == account_id)
                    .options(*chat_load_options())
                    .order_by(Chat.updated_at.desc())
                )
            ).scalars().all()
        )
        if not chats:
            return []

        chat_ids = [chat.id for chat in chats]
        latest = await self._latest_messages(db, chat_ids)
        unread = await self._unread_by_chat(db, chat_ids, _other(side))
        return [to_chat_out(chat, latest.get(chat.id), unread.get(chat.id, 0)) for chat in chats]

    async def _latest_messages(self, db: AsyncSession, chat_ids: List[uuid.UUID]) -> Dict[uuid.UUID, Message]:
        ranked = (
            select(
                Message,
                func.row_number()
                .over(partition_by=Message.chat_id, order_by=Message.created_at.desc())
                .label("position"),
            )
            .where(Message.chat_id.in_(chat_ids))
            .subquery()
        )
        latest = aliased(Message, ranked)
        rows = (await db.execute(select(latest).where(ranked.c.position == 1))).scalars().all()
        return {message.chat_id: message for message in rows}

    async def _unread_by_chat(
        self, db: AsyncSession, chat_ids: List[uuid.UUID], sender: SenderType
    ) -> Dict[uuid.UUID, int]:
        rows = (
            await db.execute(
                select(Message.chat_id, func.count(Message.id))
                .where(
                    Message.chat_id.in_(chat_ids),
                    Message.sender_type == sender.value,
                    Message.is_read.is_(False),
                )
                .group_by(Message.chat_id)
            )
        ).all()
        return {chat_id: int(count) for chat_id, count in rows}

    async def get_or_create_for_order(
        self, db: AsyncSession, side: SenderType, account_id: uuid.UUID, order_id: uuid.UUID
    ) -> ChatOut:
        order = (
            await db.execute(
                select(Order)
                .where(Order.id == order_id)
                .options(selectinload(Order.items).selectinload(OrderItem.product).selectinload(Product.shop))
            )
        ).scalar_one_or_none()

        if side is SenderType.USER:
            authorize_owner(order, lambda o: o.user_id, account_id, "Order")
            owner_id = next(
                (
                    item.product.shop.owner_id
                    for item in order.items
                    if item.product is not None and item.product.shop is not None
                ),
                None,
            )
            if owner_id is None:
                raise InvalidStateError(
                    "Could not find shop owner for this order",
                    context={"order_id": str(order_id)},
                )
            user_id = account_id
        else:
            authorize_owner(order, order_owner_ids, account_id, "Order")
            owner_id, user_id = account_id, order.user_id

        chat = await self._load_by_order(db, order_id)
        if chat is not None:
            return to_chat_out(authorize_owner(chat, _participant_of(side), account_id, "Chat"))

        db.add(Chat(order_id=order_id, user_id=user_id, owner_id=owner_id))
        await db.flush()
        logger.info("Opened chat for order %s between user %s and owner %s", order_id, user_id, owner_id)
        return to_chat_out(await self._load_by_order(db, order_id))

    async def _load_by_order(self, db: AsyncSession, order_id: uuid.UUID) -> Optional[Chat]:
        result = await db.execute(
            select(Chat).where(Chat.order_id == order_id).options(*chat_load_options())
        )
        return result.scalar_one_or_none()

    async def _get_participating(
        self, db: AsyncSession, side: SenderType, account_id: uuid.UUID, chat_id: uuid.UUID
    ) -> Chat:
        return await load_owned(db.get(Chat, chat_id), _participant_of(side), account_id, "Chat")

    # ══════════════════════════════════════════════════════════════════════
    # Messages
    # ══════════════════════════════════════════════════════════════════════

    async def list_messages(
        self,
        db: AsyncSession,
        side: SenderType,
        account_id: uuid.UUID,
        chat_id: uuid.UUID,
        limit: int = DEFAULT_MESSAGE_LIMIT,
        before: Optional[datetime] = None,
    ) -> List[Message]:
        """
        Up to `limit` messages older than `before`, oldest first.

        Opening the conversation marks every unread message from the other
        side as read.
        """
        await self._get_participating(db, side, account_id, chat_id)

        query = select(Message).where(Message.chat_id == chat_id)
        if before is not None:
            query = query.where(Message.created_at < as_utc(before))
        query = query.order_by(Message.created_at.desc()).limit(limit)
        messages = list((await db.execute(query)).scalars().all())

        await db.execute(
            update(Message)
            .where(
                Message.chat_id == chat_id,
                Message.sender_type == _other(side).value,
                Message.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )

        messages.reverse()
        return messages

    async def send_message(
        self,
        db: AsyncSession,
        side: SenderType,
        account_id: uuid.UUID,
        chat_id: uuid.UUID,
        content: str,
    ) -> Message:
        chat = await self._get_participating(db, side, account_id, chat_id)
        message = Message(
            chat_id=chat.id,
            sender_type=side.value,
            sender_id=account_id,
            content=content,
        )
        db.add(message)
        chat.updated_at = utcnow()
        await db.flush()
        return message

    async def unread_count(self, db: AsyncSession, side: SenderType, account_id: uuid.UUID) -> int:
        """Unread messages from the other side across all of the caller's chats."""
        query = (
            select(func.count(Message.id))
            .join(Chat, Chat.id == Message.chat_id)
            .where(
                _participant_column(side) == account_id,
                Message.sender_type == _other(side).value,
                Message.is_read.is_(False),
            )
        )
        return (await db.execute(query)).scalar_one()


# Singleton instance
chat_service = ChatService()
