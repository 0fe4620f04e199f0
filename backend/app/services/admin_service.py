"""
JunkHub Backend — Admin Service
=================================

What:  Platform administration: account listings, owner approval, platform
       stats and hard deletes.
Who:   Called by the /api/admin handlers. Product moderation lives in
       ProductService.set_status.

Deletes rely on database cascades: removing a user removes their orders,
offers, reviews, chats and notifications; removing an owner removes their
shops and, through them, their products.
"""

import logging
import uuid
from typing import List, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError
from app.models import Order, Owner, Product, Shop, User
from app.models.enums import ProductStatus
from app.schemas.dashboards import AdminStats
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)


def _count_by(column):
    return select(column, func.count().label("n")).group_by(column).subquery()


class AdminService:

    async def list_users(
        self, db: AsyncSession, limit: int = 50, offset: int = 0
    ) -> Tuple[List[Tuple[User, int]], int]:
        """Returns ([(user, order_count), ...], total_users)."""
        orders = _count_by(Order.user_id)
        query = (
            select(User, func.coalesce(orders.c.n, 0))
            .outerjoin(orders, orders.c.user_id == User.id)
            .order_by(User.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = [(user, int(count)) for user, count in (await db.execute(query)).all()]
        total = (await db.execute(select(func.count(User.id)))).scalar_one()
        return rows, total

    async def list_owners(
        self, db: AsyncSession, limit: int = 50, offset: int = 0
    ) -> Tuple[List[Tuple[Owner, int]], int]:
        """Returns ([(owner, shop_count), ...], total_owners)."""
        shops = _count_by(Shop.owner_id)
        query = (
            select(Owner, func.coalesce(shops.c.n, 0))
            .outerjoin(shops, shops.c.owner_id == Owner.id)
            .order_by(Owner.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = [(owner, int(count)) for owner, count in (await db.execute(query)).all()]
        total = (await db.execute(select(func.count(Owner.id)))).scalar_one()
        return rows, total

    async def approve_owner(self, db: AsyncSession, owner_id: uuid.UUID) -> Owner:
        owner = await db.get(Owner, owner_id)
        if owner is None:
            raise NotFoundError("Owner", owner_id)
        owner.approved = True
        await db.flush()
        logger.info("Owner %s approved", owner_id)

        await notification_service.owner_approved(db, owner.id)
        return owner

    async def stats(self, db: AsyncSession) -> AdminStats:
        async def scalar(query) -> int:
            return (await db.execute(query)).scalar_one()

        revenue = await scalar(select(func.coalesce(func.sum(Order.total), 0.0)))
        return AdminStats(
            total_users=await scalar(select(func.count(User.id))),
            total_owners=await scalar(select(func.count(Owner.id))),
            pending_owners=await scalar(select(func.count(Owner.id)).where(Owner.approved.is_(False))),
            total_products=await scalar(select(func.count(Product.id))),
            pending_products=await scalar(
                select(func.count(Product.id)).where(Product.status == ProductStatus.PENDING.value)
            ),
            total_orders=await scalar(select(func.count(Order.id))),
            total_revenue=round(float(revenue), 2),
        )

    async def delete_user(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        await db.delete(user)
        await db.flush()
        logger.info("Admin deleted user %s", user_id)

    async def delete_owner(self, db: AsyncSession, owner_id: uuid.UUID) -> None:
        owner = await db.get(Owner, owner_id)
        if owner is None:
            raise NotFoundError("Owner", owner_id)
        await db.delete(owner)
        await db.flush()
        logger.info("Admin deleted owner %s", owner_id)


# Singleton instance
admin_service = AdminService()
