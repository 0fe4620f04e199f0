"""
JunkHub Backend — Offer Service
=================================

What:  Sell offers: a customer offers units of an item to a shop that lists
       it as "Buying"; the shop owner accepts or rejects.
Who:   Called by the /api/offers handlers and the owner dashboard.

Offer status is permissive: an owner may move an offer between pending,
accepted and rejected in any direction. Every change notifies the customer.
"""

import logging
import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth.ownership import load_owned
from app.exceptions import InvalidStateError, NotFoundError
from app.models import Offer, Product, Shop, User
from app.models.enums import OfferStatus, ProductType
from app.schemas.commerce import CreateOfferRequest
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)


def offer_load_options():
    return (
        selectinload(Offer.product).selectinload(Product.shop),
        selectinload(Offer.user),
    )


def _offer_owner(offer: Offer) -> uuid.UUID:
    return offer.product.shop.owner_id


class OfferService:

    async def create_offer(self, db: AsyncSession, user_id: uuid.UUID, data: CreateOfferRequest) -> Offer:
        product = (
            await db.execute(
                select(Product).where(Product.id == data.product_id).options(selectinload(Product.shop))
            )
        ).scalar_one_or_none()
        if product is None:
            raise NotFoundError("Product", data.product_id)
        if product.type != ProductType.BUYING.value:
            raise InvalidStateError(
                "This product is not available for selling offers",
                context={"product_id": str(product.id), "type": product.type},
            )

        offer = Offer(
            user=await db.get(User, user_id),
            product=product,
            quantity=data.quantity,
            contact_number=data.contact_number,
            description=data.description,
            images=list(data.images),
            status=OfferStatus.PENDING.value,
        )
        db.add(offer)
        await db.flush()
        logger.info("Offer %s created by user %s for product %s", offer.id, user_id, product.id)

        await notification_service.offer_received(db, product.shop.owner_id, product.name, offer.quantity)
        return offer

    async def list_user_offers(self, db: AsyncSession, user_id: uuid.UUID) -> List[Offer]:
        result = await db.execute(
            select(Offer)
            .where(Offer.user_id == user_id)
            .options(*offer_load_options())
            .order_by(Offer.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_owner_offers(
        self, db: AsyncSession, owner_id: uuid.UUID, status: OfferStatus = None
    ) -> List[Offer]:
        """Offers made on products of any of the owner's shops."""
        query = (
            select(Offer)
            .join(Product, Product.id == Offer.product_id)
            .join(Shop, Shop.id == Product.shop_id)
            .where(Shop.owner_id == owner_id)
            .options(*offer_load_options())
            .order_by(Offer.created_at.desc())
        )
        if status:
            query = query.where(Offer.status == OfferStatus(status).value)
        return list((await db.execute(query)).scalars().all())

    async def _load(self, db: AsyncSession, offer_id: uuid.UUID):
        result = await db.execute(
            select(Offer).where(Offer.id == offer_id).options(*offer_load_options())
        )
        return result.scalar_one_or_none()

    async def update_status(
        self, db: AsyncSession, owner_id: uuid.UUID, offer_id: uuid.UUID, status: OfferStatus
    ) -> Offer:
        offer = await load_owned(self._load(db, offer_id), _offer_owner, owner_id, "Offer")
        offer.status = OfferStatus(status).value
        await db.flush()
        logger.info("Offer %s set to %s by owner %s", offer_id, offer.status, owner_id)

        await notification_service.offer_status_changed(db, offer.user_id, offer.status)
        return offer


# Singleton instance
offer_service = OfferService()
