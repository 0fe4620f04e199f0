"""
JunkHub Backend — Owner Dashboard Service
===========================================

What:  Aggregates for the shop owner dashboard: headline stats over a
       period, a merged recent-activity feed and the owner's product list.
Who:   Called by the /api/owner handlers.

"Sales" for an owner are the order lines from that owner's shops only; an
order mixing several shops contributes just the owner's share.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import utcnow
from app.models import Offer, Order, OrderItem, Product, Shop
from app.models.enums import OfferStatus
from app.schemas.dashboards import ActivityItem, OwnerStats
from app.services.notification_service import short_id
from app.services.product_service import ProductFilters, product_service

logger = logging.getLogger(__name__)

STATS_PERIODS: Dict[str, timedelta] = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "1y": timedelta(days=365),
}
DEFAULT_PERIOD = "7d"


def period_start(period: str, now: datetime) -> datetime:
    """Unknown periods fall back to the last 7 days."""
    return now - STATS_PERIODS.get(period, STATS_PERIODS[DEFAULT_PERIOD])


def _owner_shop_ids(owner_id: uuid.UUID):
    return select(Shop.id).where(Shop.owner_id == owner_id)


def _owner_product_ids(owner_id: uuid.UUID):
    return select(Product.id).where(Product.shop_id.in_(_owner_shop_ids(owner_id)))


class OwnerDashboardService:

    async def stats(self, db: AsyncSession, owner_id: uuid.UUID, period: str = DEFAULT_PERIOD) -> OwnerStats:
        if period not in STATS_PERIODS:
            period = DEFAULT_PERIOD
        since = period_start(period, utcnow())
        own_products = _owner_product_ids(owner_id)

        sales_row = (
            await db.execute(
                select(
                    func.coalesce(func.sum(OrderItem.price * OrderItem.quantity), 0.0),
                    func.count(func.distinct(Order.id)),
                )
                .select_from(OrderItem)
                .join(Order, Order.id == OrderItem.order_id)
                .where(OrderItem.product_id.in_(own_products), Order.created_at >= since)
            )
        ).one()

        pending_offers = (
            await db.execute(
                select(func.count(Offer.id)).where(
                    Offer.product_id.in_(own_products),
                    Offer.status == OfferStatus.PENDING.value,
                )
            )
        ).scalar_one()

        active_products = (
            await db.execute(
                select(func.count(Product.id)).where(Product.shop_id.in_(_owner_shop_ids(owner_id)))
            )
        ).scalar_one()

        return OwnerStats(
            period=period,
            total_sales=round(float(sales_row[0]), 2),
            total_orders=int(sales_row[1]),
            pending_offers=int(pending_offers),
            active_products=int(active_products),
        )

    async def activity(self, db: AsyncSession, owner_id: uuid.UUID, limit: int = 10) -> List[ActivityItem]:
        """Newest orders and offers touching the owner's shops, merged by time."""
        own_products = _owner_product_ids(owner_id)

        orders = (
            await db.execute(
                select(Order)
                .where(
                    Order.id.in_(
                        select(OrderItem.order_id).where(OrderItem.product_id.in_(own_products))
                    )
                )
                .options(selectinload(Order.user))
                .order_by(Order.created_at.desc())
                .limit(limit)
            )
        ).scalars().all()

        offers = (
            await db.execute(
                select(Offer)
                .where(Offer.product_id.in_(own_products))
                .options(selectinload(Offer.user), selectinload(Offer.product))
                .order_by(Offer.created_at.desc())
                .limit(limit)
            )
        ).scalars().all()

        feed = [
            ActivityItem(
                id=order.id,
                type="order",
                message=f"Order #{short_id(order.id, 6)} from {order.user.first_name} {order.user.last_name}",
                status=order.status,
                time=order.created_at,
            )
            for order in orders
        ]
        feed.extend(
            ActivityItem(
                id=offer.id,
                type="offer",
                message=(
                    f'Sell offer for "{offer.product.name}" from '
                    f"{offer.user.first_name} {offer.user.last_name}"
                ),
                status=offer.status,
                time=offer.created_at,
            )
            for offer in offers
        )
        feed.sort(key=lambda item: item.time, reverse=True)
        return feed[:limit]

    async def products(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        filters: ProductFilters,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Product], int]:
        """Every product of the owner's shops, any status."""
        return await product_service.search(
            db,
            filters,
            limit=limit,
            offset=offset,
            extra_conditions=[Product.shop_id.in_(_owner_shop_ids(owner_id))],
        )


# Singleton instance
owner_dashboard_service = OwnerDashboardService()
