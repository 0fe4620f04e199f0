"""
JunkHub Backend — Shop Service
================================

What:  Public shop browsing plus owner-side shop management.
Who:   Called by the /api/shops route handlers.

Product counts:
    Public listings count only approved products. The owner's own
    "my shops" view counts every product regardless of status.
"""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.ownership import load_owned
from app.exceptions import NotFoundError
from app.models import Owner, Product, Shop
from app.models.enums import ProductStatus
from app.schemas.catalog import ShopCreateRequest, ShopUpdateRequest

logger = logging.getLogger(__name__)

SHOP_DETAIL_PRODUCT_LIMIT = 10


def _shop_owner(shop: Shop) -> uuid.UUID:
    return shop.owner_id


def _product_counts(approved_only: bool):
    query = select(Product.shop_id, func.count(Product.id).label("product_count"))
    if approved_only:
        query = query.where(Product.status == ProductStatus.APPROVED.value)
    return query.group_by(Product.shop_id).subquery()


class ShopService:

    async def list_shops(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Tuple[Shop, int]], int]:
        """Returns ([(shop, approved_product_count), ...], total_matching)."""
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Shop.name.ilike(pattern), Shop.description.ilike(pattern)))

        counts = _product_counts(approved_only=True)
        query = (
            select(Shop, func.coalesce(counts.c.product_count, 0))
            .outerjoin(counts, counts.c.shop_id == Shop.id)
            .where(*conditions)
            .options(selectinload(Shop.owner))
            .order_by(Shop.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = [(shop, int(count)) for shop, count in (await db.execute(query)).all()]

        total = (
            await db.execute(select(func.count()).select_from(Shop).where(*conditions))
        ).scalar_one()
        return rows, total

    async def get_shop_detail(self, db: AsyncSession, shop_id: uuid.UUID) -> Tuple[Shop, List[Product]]:
        """A shop with its newest approved products."""
        shop = (
            await db.execute(
                select(Shop).where(Shop.id == shop_id).options(selectinload(Shop.owner))
            )
        ).scalar_one_or_none()
        if shop is None:
            raise NotFoundError("Shop", shop_id)

        products = (
            await db.execute(
                select(Product)
                .where(Product.shop_id == shop_id, Product.status == ProductStatus.APPROVED.value)
                .options(selectinload(Product.shop))
                .order_by(Product.created_at.desc())
                .limit(SHOP_DETAIL_PRODUCT_LIMIT)
            )
        ).scalars().all()
        return shop, list(products)

    async def my_shops(self, db: AsyncSession, owner_id: uuid.UUID) -> List[Tuple[Shop, int]]:
        """
        The owner's shops with total product counts.

        An approved owner with no shop gets one created from their business
        profile on first access.
        """
        rows = await self._owner_shops(db, owner_id)
        if rows:
            return rows

        owner = await db.get(Owner, owner_id)
        if owner is None or not owner.approved:
            return []

        shop = Shop(
            owner_id=owner.id,
            name=owner.business_name,
            business_address=owner.business_address,
            logo=owner.profile_pic,
        )
        db.add(shop)
        await db.flush()
        logger.info("Auto-created shop %s for owner %s", shop.id, owner.id)
        return [(shop, 0)]

    async def _owner_shops(self, db: AsyncSession, owner_id: uuid.UUID) -> List[Tuple[Shop, int]]:
        counts = _product_counts(approved_only=False)
        query = (
            select(Shop, func.coalesce(counts.c.product_count, 0))
            .outerjoin(counts, counts.c.shop_id == Shop.id)
            .where(Shop.owner_id == owner_id)
            .order_by(Shop.created_at.desc())
        )
        return [(shop, int(count)) for shop, count in (await db.execute(query)).all()]

    async def get_owned_shop(self, db: AsyncSession, owner_id: uuid.UUID, shop_id: uuid.UUID) -> Shop:
        return await load_owned(db.get(Shop, shop_id), _shop_owner, owner_id, "Shop")

    async def create_shop(self, db: AsyncSession, owner_id: uuid.UUID, data: ShopCreateRequest) -> Shop:
        shop = Shop(owner_id=owner_id, **data.model_dump())
        db.add(shop)
        await db.flush()
        logger.info("Owner %s created shop %s", owner_id, shop.id)
        return shop

    async def update_shop(
        self, db: AsyncSession, owner_id: uuid.UUID, shop_id: uuid.UUID, data: ShopUpdateRequest
    ) -> Shop:
        shop = await self.get_owned_shop(db, owner_id, shop_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(shop, field, value)
        await db.flush()
        return shop

    async def delete_shop(self, db: AsyncSession, owner_id: uuid.UUID, shop_id: uuid.UUID) -> None:
        """Deleting a shop deletes its products (database cascade)."""
        shop = await self.get_owned_shop(db, owner_id, shop_id)
        await db.delete(shop)
        await db.flush()
        logger.info("Owner %s deleted shop %s", owner_id, shop_id)


# Singleton instance
shop_service = ShopService()
