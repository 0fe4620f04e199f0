"""
JunkHub Backend — Order Service
=================================

What:  Order placement, listing, cancellation, owner status updates and
       customer confirmation (receipt issue).
Who:   Called by the /api/orders, /api/users and /api/owner handlers.

Order placement (create_order):
    1. Aggregate requested quantity per product.
    2. Read every product row with a row lock (FOR UPDATE where the
       database supports it).
    3. Validate every line: the product must exist and the aggregated
       quantity must not exceed its stock. Nothing is written until all
       lines pass, so a rejected order leaves stock untouched.
    4. Snapshot unit prices, compute total = Σ price × quantity, insert the
       order and its items, decrement stock. All of this shares the request
       transaction: it commits or rolls back as a unit.
    5. Notify each distinct shop owner once (best effort).

Confirmation (confirm_order):
    An order with a receipt is already confirmed → AlreadyConfirmedError
    carrying the existing receipt. Otherwise the order must be "delivered";
    it becomes "completed" with a fresh RCP-YYYYMMDD-XXXXXXXX receipt and a
    completion timestamp, and each distinct shop owner is notified.
"""

import logging
import secrets
import string
import uuid
from datetime import datetime
from typing import Dict, List, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.ownership import load_owned
from app.database import utcnow
from app.exceptions import (
    AlreadyConfirmedError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
)
from app.models import Order, OrderItem, Product, Shop, User
from app.models.enums import OrderStatus
from app.schemas.commerce import CreateOrderRequest
from app.services.notification_service import distinct_ids, notification_service

logger = logging.getLogger(__name__)

RECEIPT_ALPHABET = string.digits + string.ascii_uppercase


def order_load_options():
    """Eager loads needed to serialize an order with its items and customer."""
    return (
        selectinload(Order.items).selectinload(OrderItem.product).selectinload(Product.shop),
        selectinload(Order.user),
    )


def order_owner_ids(order: Order) -> Set[uuid.UUID]:
    """Owners of every shop that supplied an item still linked to a product."""
    return {
        item.product.shop.owner_id
        for item in order.items
        if item.product is not None and item.product.shop is not None
    }


def generate_receipt_number(now: datetime) -> str:
    suffix = "".join(secrets.choice(RECEIPT_ALPHABET) for _ in range(8))
    return f"RCP-{now:%Y%m%d}-{suffix}"


class OrderService:

    async def _load(self, db: AsyncSession, order_id: uuid.UUID):
        result = await db.execute(
            select(Order).where(Order.id == order_id).options(*order_load_options())
        )
        return result.scalar_one_or_none()

    async def get_user_order(self, db: AsyncSession, user_id: uuid.UUID, order_id: uuid.UUID) -> Order:
        return await load_owned(self._load(db, order_id), lambda o: o.user_id, user_id, "Order")

    async def list_user_orders(self, db: AsyncSession, user_id: uuid.UUID) -> List[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .options(*order_load_options())
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_owner_orders(
        self, db: AsyncSession, owner_id: uuid.UUID, status: OrderStatus = None
    ) -> List[Order]:
        """Orders containing at least one item from the owner's shops."""
        owned = (
            select(OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .join(Shop, Shop.id == Product.shop_id)
            .where(Shop.owner_id == owner_id)
        )
        query = (
            select(Order)
            .where(Order.id.in_(owned))
            .options(*order_load_options())
            .order_by(Order.created_at.desc())
        )
        if status:
            query = query.where(Order.status == OrderStatus(status).value)
        return list((await db.execute(query)).scalars().all())

    # ══════════════════════════════════════════════════════════════════════
    # Placement
    # ══════════════════════════════════════════════════════════════════════

    async def create_order(self, db: AsyncSession, user_id: uuid.UUID, data: CreateOrderRequest) -> Order:
        requested: Dict[uuid.UUID, int] = {}
        for line in data.items:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        result = await db.execute(
            select(Product)
            .where(Product.id.in_(list(requested)))
            .options(selectinload(Product.shop))
            .with_for_update(of=Product)
        )
        products = {product.id: product for product in result.scalars().all()}

        # Validate everything before writing anything
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                raise NotFoundError("Product", product_id)
            if quantity > product.stock:
                raise InsufficientStockError(product.name, quantity, product.stock)

        items = [
            OrderItem(
                product=products[line.product_id],
                quantity=line.quantity,
                price=products[line.product_id].price,
            )
            for line in data.items
        ]
        total = round(sum(item.price * item.quantity for item in items), 2)

        order = Order(
            user=await db.get(User, user_id),
            total=total,
            status=OrderStatus.PENDING.value,
            shipping_address=data.shipping_address,
            shipping_city=data.shipping_city,
            shipping_zip=data.shipping_zip,
            items=items,
        )
        db.add(order)

        for product_id, quantity in requested.items():
            products[product_id].stock -= quantity

        await db.flush()
        logger.info(
            "Order %s placed by user %s: %d line(s), total %.2f",
            order.id,
            user_id,
            len(items),
            total,
        )

        owner_ids = distinct_ids(products[line.product_id].shop.owner_id for line in data.items)
        await notification_service.order_created(db, owner_ids, order.id, order.total)
        return order

    # ══════════════════════════════════════════════════════════════════════
    # Transitions
    # ══════════════════════════════════════════════════════════════════════

    async def cancel_order(self, db: AsyncSession, user_id: uuid.UUID, order_id: uuid.UUID) -> Order:
        """Customer cancellation, allowed only while pending. Stock is not restored."""
        order = await self.get_user_order(db, user_id, order_id)
        if order.status != OrderStatus.PENDING.value:
            raise InvalidStateError(
                "Only pending orders can be cancelled",
                context={"order_id": str(order_id), "status": order.status},
            )
        order.status = OrderStatus.CANCELLED.value
        await db.flush()
        logger.info("Order %s cancelled by user %s", order_id, user_id)
        return order

    async def update_status(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        order_id: uuid.UUID,
        status: OrderStatus,
    ) -> Order:
        """
        Owner status update. Any owner whose shop supplied an item may set
        any owner-settable status; the customer is notified.
        """
        order = await load_owned(self._load(db, order_id), order_owner_ids, owner_id, "Order")
        order.status = OrderStatus(status).value
        await db.flush()
        logger.info("Order %s set to %s by owner %s", order_id, order.status, owner_id)

        await notification_service.order_status_changed(db, order.user_id, order.status)
        return order

    async def confirm_order(self, db: AsyncSession, user_id: uuid.UUID, order_id: uuid.UUID) -> Order:
        order = await self.get_user_order(db, user_id, order_id)

        if order.receipt_number:
            raise AlreadyConfirmedError(order.receipt_number, context={"order_id": str(order_id)})
        if order.status != OrderStatus.DELIVERED.value:
            raise InvalidStateError(
                "Can only confirm delivered orders",
                context={"order_id": str(order_id), "status": order.status},
            )

        now = utcnow()
        order.receipt_number = generate_receipt_number(now)
        order.completed_at = now
        order.status = OrderStatus.COMPLETED.value
        await db.flush()
        logger.info("Order %s confirmed with receipt %s", order_id, order.receipt_number)

        await notification_service.order_completed(
            db, sorted(order_owner_ids(order), key=str), order.id, order.receipt_number
        )
        return order


# Singleton instance
order_service = OrderService()
