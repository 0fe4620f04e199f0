"""
JunkHub Backend — Notification Route Handlers
===============================================

What:  The notification inbox, one per account kind:
           /api/notifications         users
           /api/owner/notifications   owners
           /api/admin/notifications   admins
How:   `build_notification_router` binds a role and its gate to one set of
       handlers. Literal paths (`/unread/count`, `/read-all`, `/clear-all`)
       are declared before `/{notification_id}` routes.

Acting on a notification addressed to someone else → 403, and nothing
changes.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_admin, require_owner, require_user
from app.database import get_db_session
from app.models.enums import Role
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.messaging import (
    NotificationEnvelope,
    NotificationListResponse,
    UnreadCountResponse,
)
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)

_ADDRESSED_RESPONSES = {
    403: {"description": "Notification is addressed to another account", "model": ErrorResponse},
    404: {"description": "Notification not found", "model": ErrorResponse},
}


def build_notification_router(prefix: str, role: Role, gate) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=["Notifications"])

    @router.get("", response_model=NotificationListResponse, summary="Newest notifications first")
    async def list_notifications(
        limit: int = Query(default=50, ge=1, le=200),
        unread_only: bool = Query(default=False, alias="unreadOnly"),
        principal=Depends(gate),
        db: AsyncSession = Depends(get_db_session),
    ) -> NotificationListResponse:
        notifications = await notification_service.list_for(
            db, role, principal.id, limit=limit, unread_only=unread_only
        )
        unread = await notification_service.unread_count(db, role, principal.id)
        return NotificationListResponse(notifications=notifications, unread_count=unread)

    @router.get("/unread/count", response_model=UnreadCountResponse, summary="Unread notification count")
    async def unread_count(principal=Depends(gate), db: AsyncSession = Depends(get_db_session)) -> UnreadCountResponse:
        return UnreadCountResponse(unread_count=await notification_service.unread_count(db, role, principal.id))

    @router.put("/read-all", response_model=MessageResponse, summary="Mark every notification read")
    async def mark_all_read(principal=Depends(gate), db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
        await notification_service.mark_all_read(db, role, principal.id)
        return MessageResponse(message="All notifications marked as read")

    @router.delete("/clear-all", response_model=MessageResponse, summary="Delete every notification")
    async def clear_all(principal=Depends(gate), db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
        await notification_service.clear_all(db, role, principal.id)
        return MessageResponse(message="All notifications cleared")

    @router.put(
        "/{notification_id}/read",
        response_model=NotificationEnvelope,
        responses=_ADDRESSED_RESPONSES,
        summary="Mark one notification read",
    )
    async def mark_read(
        notification_id: uuid.UUID,
        principal=Depends(gate),
        db: AsyncSession = Depends(get_db_session),
    ) -> NotificationEnvelope:
        notification = await notification_service.mark_read(db, role, principal.id, notification_id)
        return NotificationEnvelope(notification=notification)

    @router.delete(
        "/{notification_id}",
        response_model=MessageResponse,
        responses=_ADDRESSED_RESPONSES,
        summary="Delete one notification",
    )
    async def delete_notification(
        notification_id: uuid.UUID,
        principal=Depends(gate),
        db: AsyncSession = Depends(get_db_session),
    ) -> MessageResponse:
        await notification_service.delete(db, role, principal.id, notification_id)
        return MessageResponse(message="Notification deleted")

    return router


user_notifications_router = build_notification_router("/api/notifications", Role.USER, require_user)
owner_notifications_router = build_notification_router("/api/owner/notifications", Role.OWNER, require_owner)
admin_notifications_router = build_notification_router("/api/admin/notifications", Role.ADMIN, require_admin)
