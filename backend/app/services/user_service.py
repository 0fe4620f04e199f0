"""
JunkHub Backend — Customer Service
====================================

What:  Customer-only features: the wishlist and product reviews.
Who:   Called by the /api/users handlers.

Wishlist:
    An ordered list of product id strings stored on the user row. PUT
    toggles: present → removed, absent → appended. Ids of products that no
    longer exist are skipped when the wishlist is expanded into products.

Reviews:
    A customer may review a product only after a *completed* order that
    contains it. Re-submitting updates the existing review in place.
"""

import logging
import uuid
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import ForbiddenError, NotFoundError
from app.models import Order, OrderItem, Product, Review, User
from app.models.enums import OrderStatus, Role
from app.schemas.catalog import ReviewRequest
from app.services.account_service import account_service
from app.services.product_service import product_query

logger = logging.getLogger(__name__)


class UserService:

    # ── Wishlist ──────────────────────────────────────────────────────────

    async def get_wishlist(self, db: AsyncSession, user_id: uuid.UUID) -> List[Product]:
        user = await account_service.get_account(db, Role.USER, user_id)
        ids = []
        for value in user.wishlist or []:
            try:
                ids.append(uuid.UUID(str(value)))
            except ValueError:
                continue
        if not ids:
            return []

        products = (await db.execute(product_query().where(Product.id.in_(ids)))).scalars().all()
        by_id = {product.id: product for product in products}
        return [by_id[product_id] for product_id in ids if product_id in by_id]

    async def toggle_wishlist(self, db: AsyncSession, user_id: uuid.UUID, product_id: uuid.UUID) -> List[str]:
        user = await account_service.get_account(db, Role.USER, user_id)
        key = str(product_id)
        current = list(user.wishlist or [])
        if key in current:
            current.remove(key)
        else:
            current.append(key)
        # JSON columns only persist on reassignment
        user.wishlist = current
        await db.flush()
        return current

    # ── Reviews ───────────────────────────────────────────────────────────

    async def submit_review(
        self, db: AsyncSession, user_id: uuid.UUID, data: ReviewRequest
    ) -> Tuple[Review, bool]:
        """
        Creates or updates the caller's review of a product.

        Returns:
            (review, created) where `created` is False for an update.
        """
        if await db.get(Product, data.product_id) is None:
            raise NotFoundError("Product", data.product_id)

        purchased = (
            await db.execute(
                select(Order.id)
                .join(OrderItem, OrderItem.order_id == Order.id)
                .where(
                    Order.user_id == user_id,
                    Order.status == OrderStatus.COMPLETED.value,
                    OrderItem.product_id == data.product_id,
                )
                .limit(1)
            )
        ).scalar_one_or_none()
        if purchased is None:
            raise ForbiddenError(
                "You can only review products from completed orders",
                context={"product_id": str(data.product_id)},
            )

        review = (
            await db.execute(
                select(Review)
                .where(Review.user_id == user_id, Review.product_id == data.product_id)
                .options(selectinload(Review.user))
            )
        ).scalar_one_or_none()

        created = review is None
        if created:
            review = Review(
                user=await db.get(User, user_id),
                product_id=data.product_id,
                rating=data.rating,
                comment=data.comment,
            )
            db.add(review)
        else:
            review.rating = data.rating
            review.comment = data.comment

        await db.flush()
        logger.info(
            "Review %s %s by user %s for product %s",
            review.id,
            "created" if created else "updated",
            user_id,
            data.product_id,
        )
        return review, created

    async def list_reviews(self, db: AsyncSession, user_id: uuid.UUID) -> List[Review]:
        result = await db.execute(
            select(Review)
            .where(Review.user_id == user_id)
            .options(selectinload(Review.user), selectinload(Review.product))
            .order_by(Review.created_at.desc())
        )
        return list(result.scalars().all())


# Singleton instance
user_service = UserService()
