"""
JunkHub Backend — Product Service
===================================

What:  Public catalog queries (listing, detail, bestsellers, categories) and
       owner-side product management.
Who:   Called by the /api/products, /api/owner and /api/admin handlers.

Visibility rule:
    Every public read filters on status == "approved". A pending or rejected
    product is indistinguishable from a missing one (404) to the public.

New products start as "pending" and every admin is notified. Ownership of a
product is ownership of its shop.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.ownership import authorize_owner
from app.exceptions import NotFoundError
from app.models import OrderItem, Product, Review, Shop
from app.models.enums import ProductStatus, ProductType
from app.schemas.catalog import ProductCreateRequest, ProductUpdateRequest
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)


@dataclass
class ProductFilters:
    search: Optional[str] = None
    category: Optional[str] = None
    type: Optional[ProductType] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    shop_id: Optional[uuid.UUID] = None
    status: Optional[ProductStatus] = None

    def conditions(self) -> list:
        conditions = []
        if self.search:
            pattern = f"%{self.search}%"
            conditions.append(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
        if self.category:
            conditions.append(Product.category == self.category)
        if self.type:
            conditions.append(Product.type == ProductType(self.type).value)
        if self.min_price is not None:
            conditions.append(Product.price >= self.min_price)
        if self.max_price is not None:
            conditions.append(Product.price <= self.max_price)
        if self.shop_id:
            conditions.append(Product.shop_id == self.shop_id)
        if self.status:
            conditions.append(Product.status == ProductStatus(self.status).value)
        return conditions


def product_query():
    """Base product select; the shop is always eager-loaded for serialization."""
    return select(Product).options(selectinload(Product.shop))


def product_owner(product: Product) -> uuid.UUID:
    return product.shop.owner_id


class ProductService:

    # ══════════════════════════════════════════════════════════════════════
    # Public catalog
    # ══════════════════════════════════════════════════════════════════════

    async def list_public(
        self, db: AsyncSession, filters: ProductFilters, limit: int = 20, offset: int = 0
    ) -> Tuple[List[Product], int]:
        filters.status = ProductStatus.APPROVED
        return await self.search(db, filters, limit=limit, offset=offset)

    async def search(
        self,
        db: AsyncSession,
        filters: ProductFilters,
        limit: Optional[int] = 20,
        offset: int = 0,
        extra_conditions: Optional[list] = None,
    ) -> Tuple[List[Product], int]:
        conditions = filters.conditions() + list(extra_conditions or [])
        query = product_query().where(*conditions).order_by(Product.created_at.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        products = list((await db.execute(query)).scalars().all())
        total = (
            await db.execute(select(func.count()).select_from(Product).where(*conditions))
        ).scalar_one()
        return products, total

    async def bestsellers(self, db: AsyncSession, limit: int = 10) -> List[Tuple[Product, int]]:
        """Approved products ranked by total ordered quantity."""
        sold = (
            select(OrderItem.product_id, func.sum(OrderItem.quantity).label("total_sold"))
            .where(OrderItem.product_id.is_not(None))
            .group_by(OrderItem.product_id)
            .subquery()
        )
        query = (
            select(Product, sold.c.total_sold)
            .join(sold, sold.c.product_id == Product.id)
            .where(Product.status == ProductStatus.APPROVED.value)
            .options(selectinload(Product.shop))
            .order_by(sold.c.total_sold.desc(), Product.created_at.desc())
            .limit(limit)
        )
        return [(product, int(total)) for product, total in (await db.execute(query)).all()]

    async def categories(self, db: AsyncSession) -> List[Tuple[str, int]]:
        """Categories of approved products with their counts, most populated first."""
        count = func.count(Product.id)
        query = (
            select(Product.category, count)
            .where(Product.status == ProductStatus.APPROVED.value)
            .group_by(Product.category)
            .order_by(count.desc(), Product.category)
        )
        return [(name, int(total)) for name, total in (await db.execute(query)).all()]

    async def get_public(self, db: AsyncSession, product_id: uuid.UUID) -> Tuple[Product, List[Review]]:
        product = (
            await db.execute(
                product_query().where(
                    Product.id == product_id,
                    Product.status == ProductStatus.APPROVED.value,
                )
            )
        ).scalar_one_or_none()
        if product is None:
            raise NotFoundError("Product", product_id)

        reviews = (
            await db.execute(
                select(Review)
                .where(Review.product_id == product_id)
                .options(selectinload(Review.user))
                .order_by(Review.created_at.desc())
            )
        ).scalars().all()
        return product, list(reviews)

    # ══════════════════════════════════════════════════════════════════════
    # Owner management
    # ══════════════════════════════════════════════════════════════════════

    async def get_owned(self, db: AsyncSession, owner_id: uuid.UUID, product_id: uuid.UUID) -> Product:
        product = (await db.execute(product_query().where(Product.id == product_id))).scalar_one_or_none()
        return authorize_owner(product, product_owner, owner_id, "Product")

    async def create(self, db: AsyncSession, owner_id: uuid.UUID, data: ProductCreateRequest) -> Product:
        """
        Lists a new product in one of the owner's shops.

        The product starts pending; all admins are asked to review it.
        """
        shop = authorize_owner(await db.get(Shop, data.shop_id), lambda s: s.owner_id, owner_id, "Shop")

        product = Product(
            shop=shop,
            name=data.name,
            description=data.description,
            price=data.price,
            category=data.category,
            stock=data.stock,
            type=data.type.value,
            images=list(data.images),
            status=ProductStatus.PENDING.value,
        )
        db.add(product)
        await db.flush()
        logger.info("Product %s created in shop %s (pending approval)", product.id, shop.id)

        await notification_service.product_pending(db, product.name, shop.name)
        return product

    async def update(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        product_id: uuid.UUID,
        data: ProductUpdateRequest,
    ) -> Product:
        product = await self.get_owned(db, owner_id, product_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "type" and value is not None:
                value = ProductType(value).value
            setattr(product, field, value)
        await db.flush()
        return product

    async def delete(self, db: AsyncSession, owner_id: uuid.UUID, product_id: uuid.UUID) -> None:
        product = await self.get_owned(db, owner_id, product_id)
        await db.delete(product)
        await db.flush()
        logger.info("Owner %s deleted product %s", owner_id, product_id)

    # ══════════════════════════════════════════════════════════════════════
    # Moderation
    # ══════════════════════════════════════════════════════════════════════

    async def status_counts(self, db: AsyncSession) -> Dict[str, int]:
        rows = (
            await db.execute(select(Product.status, func.count(Product.id)).group_by(Product.status))
        ).all()
        counts = {status.value: 0 for status in ProductStatus}
        counts.update({status: int(total) for status, total in rows})
        counts["all"] = sum(counts[status.value] for status in ProductStatus)
        return counts

    async def set_status(
        self,
        db: AsyncSession,
        product_id: uuid.UUID,
        status: ProductStatus,
        reason: Optional[str] = None,
    ) -> Product:
        """
        Approves or rejects a product from any current state and notifies
        the owner of its shop.
        """
        product = (await db.execute(product_query().where(Product.id == product_id))).scalar_one_or_none()
        if product is None:
            raise NotFoundError("Product", product_id)

        product.status = status.value
        await db.flush()
        logger.info("Product %s marked %s", product_id, status.value)

        if status is ProductStatus.APPROVED:
            await notification_service.product_approved(db, product.shop.owner_id, product.name)
        elif status is ProductStatus.REJECTED:
            await notification_service.product_rejected(db, product.shop.owner_id, product.name, reason)
        return product

    async def delete_any(self, db: AsyncSession, product_id: uuid.UUID) -> None:
        product = await db.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        await db.delete(product)
        await db.flush()


# Singleton instance
product_service = ProductService()
