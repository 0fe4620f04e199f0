"""
JunkHub Backend — Notification Service
========================================

What:  Persists in-app notifications for the parties interested in a domain
       event, and serves each account's notification inbox.
How:   Each notification write runs inside its own SAVEPOINT
       (`session.begin_nested()`) within the request transaction.
Who:   Called by the order, offer, product, account and admin services after
       their own writes; called by the notification routes for inbox ops.

Delivery contract (best effort):
    A failed notification write is logged and dropped. The savepoint is
    rolled back, the triggering mutation stays intact, nothing is retried
    and the caller never sees the error.

Recipient semantics:
    notify_user / notify_owner / notify_admin   one row for one account
    notify_all_admins                           one row per admin at call time
    Event helpers that address "the owners" of an order notify each
    distinct owner exactly once.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.ownership import authorize_owner
from app.models import Admin, Notification
from app.models.enums import NotificationType, OfferStatus, OrderStatus, Role

logger = logging.getLogger(__name__)

# Recipient column for each account kind
_RECIPIENT_COLUMN = {
    Role.USER: "user_id",
    Role.OWNER: "owner_id",
    Role.ADMIN: "admin_id",
}

_ORDER_STATUS_MESSAGES = {
    OrderStatus.PROCESSING.value: "Your order is now being processed",
    OrderStatus.SHIPPED.value: "Your order has been shipped",
    OrderStatus.DELIVERED.value: "Your order has been delivered",
    OrderStatus.CANCELLED.value: "Your order has been cancelled",
}

_OFFER_STATUS_MESSAGES = {
    OfferStatus.ACCEPTED.value: "Your sell offer has been accepted! The shop will contact you soon.",
    OfferStatus.REJECTED.value: "Your sell offer has been declined.",
    OfferStatus.PENDING.value: "Your sell offer status has been reverted to pending.",
}


@dataclass(frozen=True)
class NotificationPayload:
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None


def short_id(value: uuid.UUID, length: int = 8) -> str:
    """Trailing characters of an id, as shown to people ("#1a2b3c4d")."""
    return str(value).replace("-", "")[-length:]


def distinct_ids(ids: Iterable[Optional[uuid.UUID]]) -> List[uuid.UUID]:
    """Order-preserving de-duplication that drops missing ids."""
    seen = []
    for value in ids:
        if value is not None and value not in seen:
            seen.append(value)
    return seen


class NotificationService:
    """
    Fan-out writer plus inbox queries.

    Stateless: every method receives the request's session.
    """

    # ══════════════════════════════════════════════════════════════════════
    # Fan-out primitives
    # ══════════════════════════════════════════════════════════════════════

    async def _write(
        self,
        db: AsyncSession,
        role: Role,
        recipient_ids: Sequence[uuid.UUID],
        payload: NotificationPayload,
    ) -> int:
        """
        Inserts one row per recipient inside a savepoint.

        Returns the number of rows written (0 on failure).
        """
        if not recipient_ids:
            return 0
        column = _RECIPIENT_COLUMN[role]
        try:
            async with db.begin_nested():
                for recipient_id in recipient_ids:
                    db.add(
                        Notification(
                            **{column: recipient_id},
                            type=payload.type.value,
                            title=payload.title,
                            message=payload.message,
                            link=payload.link,
                        )
                    )
            return len(recipient_ids)
        except Exception as exc:
            logger.error(
                "Failed to write %s notification '%s' for %d recipient(s): %s",
                role.value,
                payload.title,
                len(recipient_ids),
                exc,
            )
            return 0

    async def notify_user(self, db: AsyncSession, user_id: uuid.UUID, payload: NotificationPayload) -> int:
        return await self._write(db, Role.USER, [user_id], payload)

    async def notify_owner(self, db: AsyncSession, owner_id: uuid.UUID, payload: NotificationPayload) -> int:
        return await self._write(db, Role.OWNER, [owner_id], payload)

    async def notify_admin(self, db: AsyncSession, admin_id: uuid.UUID, payload: NotificationPayload) -> int:
        return await self._write(db, Role.ADMIN, [admin_id], payload)

    async def notify_owners(
        self, db: AsyncSession, owner_ids: Iterable[Optional[uuid.UUID]], payload: NotificationPayload
    ) -> int:
        """One row per distinct owner."""
        return await self._write(db, Role.OWNER, distinct_ids(owner_ids), payload)

    async def notify_all_admins(self, db: AsyncSession, payload: NotificationPayload) -> int:
        try:
            admin_ids = list((await db.execute(select(Admin.id))).scalars().all())
        except Exception as exc:
            logger.error("Failed to look up admins for notification '%s': %s", payload.title, exc)
            return 0
        if not admin_ids:
            logger.info("No admins to notify for '%s'", payload.title)
        return await self._write(db, Role.ADMIN, admin_ids, payload)

    # ══════════════════════════════════════════════════════════════════════
    # Domain events
    # ══════════════════════════════════════════════════════════════════════

    async def order_created(
        self, db: AsyncSession, owner_ids: Iterable[uuid.UUID], order_id: uuid.UUID, total: float
    ) -> int:
        return await self.notify_owners(
            db,
            owner_ids,
            NotificationPayload(
                type=NotificationType.ORDER,
                title="New Order Received",
                message=f"New order #{short_id(order_id)} received for ₱{total:,.2f}",
                link="/dashboard/orders",
            ),
        )

    async def order_status_changed(
        self, db: AsyncSession, user_id: uuid.UUID, status: str
    ) -> int:
        message = _ORDER_STATUS_MESSAGES.get(status, f"Your order status changed to {status}")
        return await self.notify_user(
            db,
            user_id,
            NotificationPayload(
                type=NotificationType.ORDER,
                title=f"Order {status.capitalize()}",
                message=message,
                link="/profile/orders",
            ),
        )

    async def order_completed(
        self,
        db: AsyncSession,
        owner_ids: Iterable[uuid.UUID],
        order_id: uuid.UUID,
        receipt_number: str,
    ) -> int:
        return await self.notify_owners(
            db,
            owner_ids,
            NotificationPayload(
                type=NotificationType.ORDER,
                title="Order Completed",
                message=(
                    f"Order #{short_id(order_id, 6)} has been confirmed by the customer. "
                    f"Receipt: {receipt_number}"
                ),
                link="/orders",
            ),
        )

    async def offer_received(
        self, db: AsyncSession, owner_id: uuid.UUID, product_name: str, quantity: int
    ) -> int:
        return await self.notify_owner(
            db,
            owner_id,
            NotificationPayload(
                type=NotificationType.OFFER,
                title="New Sell Offer",
                message=f'New offer received for {quantity} units of "{product_name}"',
                link="/dashboard/orders",
            ),
        )

    async def offer_status_changed(
        self, db: AsyncSession, user_id: uuid.UUID, status: str
    ) -> int:
        message = _OFFER_STATUS_MESSAGES.get(status, f"Your sell offer status changed to {status}.")
        return await self.notify_user(
            db,
            user_id,
            NotificationPayload(
                type=NotificationType.OFFER,
                title=f"Offer {status.capitalize()}",
                message=message,
                link="/profile/orders",
            ),
        )

    async def owner_approved(self, db: AsyncSession, owner_id: uuid.UUID) -> int:
        return await self.notify_owner(
            db,
            owner_id,
            NotificationPayload(
                type=NotificationType.APPROVAL,
                title="Account Approved!",
                message="Your owner account has been approved. You can now access your dashboard.",
                link="/dashboard",
            ),
        )

    async def owner_registered(self, db: AsyncSession, business_name: str) -> int:
        return await self.notify_all_admins(
            db,
            NotificationPayload(
                type=NotificationType.APPROVAL,
                title="New Owner Registration",
                message=f'New owner "{business_name}" is pending approval',
                link="/admin/owners",
            ),
        )

    async def product_pending(self, db: AsyncSession, product_name: str, shop_name: str) -> int:
        return await self.notify_all_admins(
            db,
            NotificationPayload(
                type=NotificationType.APPROVAL,
                title="New Product Pending Approval",
                message=(
                    f'A new product "{product_name}" from shop "{shop_name}" '
                    "is waiting for your approval."
                ),
                link="/products",
            ),
        )

    async def product_approved(self, db: AsyncSession, owner_id: uuid.UUID, product_name: str) -> int:
        return await self.notify_owner(
            db,
            owner_id,
            NotificationPayload(
                type=NotificationType.APPROVAL,
                title="Product Approved",
                message=f'Your product "{product_name}" has been approved and is now visible to customers.',
                link="/dashboard/products",
            ),
        )

    async def product_rejected(
        self, db: AsyncSession, owner_id: uuid.UUID, product_name: str, reason: Optional[str] = None
    ) -> int:
        if reason:
            message = f'Your product "{product_name}" has been rejected. Reason: {reason}'
        else:
            message = (
                f'Your product "{product_name}" has been rejected. '
                "Please review and update your product listing."
            )
        return await self.notify_owner(
            db,
            owner_id,
            NotificationPayload(
                type=NotificationType.APPROVAL,
                title="Product Rejected",
                message=message,
                link="/dashboard/products",
            ),
        )

    # ══════════════════════════════════════════════════════════════════════
    # Inbox
    # ══════════════════════════════════════════════════════════════════════

    def _recipient_filter(self, role: Role, account_id: uuid.UUID):
        return getattr(Notification, _RECIPIENT_COLUMN[role]) == account_id

    async def list_for(
        self,
        db: AsyncSession,
        role: Role,
        account_id: uuid.UUID,
        limit: int = 50,
        unread_only: bool = False,
    ) -> List[Notification]:
        query = select(Notification).where(self._recipient_filter(role, account_id))
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc()).limit(limit)
        return list((await db.execute(query)).scalars().all())

    async def unread_count(self, db: AsyncSession, role: Role, account_id: uuid.UUID) -> int:
        query = (
            select(func.count())
            .select_from(Notification)
            .where(self._recipient_filter(role, account_id), Notification.is_read.is_(False))
        )
        return (await db.execute(query)).scalar_one()

    async def _get_addressed(
        self, db: AsyncSession, role: Role, account_id: uuid.UUID, notification_id: uuid.UUID
    ) -> Notification:
        """Loads a notification and checks the caller is its addressee."""
        column = _RECIPIENT_COLUMN[role]
        return authorize_owner(
            await db.get(Notification, notification_id),
            lambda n: getattr(n, column),
            account_id,
            "Notification",
        )

    async def mark_read(
        self, db: AsyncSession, role: Role, account_id: uuid.UUID, notification_id: uuid.UUID
    ) -> Notification:
        notification = await self._get_addressed(db, role, account_id, notification_id)
        notification.is_read = True
        await db.flush()
        return notification

    async def mark_all_read(self, db: AsyncSession, role: Role, account_id: uuid.UUID) -> int:
        result = await db.execute(
            update(Notification)
            .where(self._recipient_filter(role, account_id), Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def delete(
        self, db: AsyncSession, role: Role, account_id: uuid.UUID, notification_id: uuid.UUID
    ) -> None:
        notification = await self._get_addressed(db, role, account_id, notification_id)
        await db.delete(notification)
        await db.flush()

    async def clear_all(self, db: AsyncSession, role: Role, account_id: uuid.UUID) -> int:
        result = await db.execute(
            delete(Notification)
            .where(self._recipient_filter(role, account_id))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0


# Singleton instance
notification_service = NotificationService()
