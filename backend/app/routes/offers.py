"""
JunkHub Backend — Offer Route Handlers
========================================

What:  Customers offering items to shops ("Buying" products) and owners
       answering those offers.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import OwnerIdentity, UserIdentity, require_owner, require_user
from app.database import get_db_session
from app.schemas.commerce import (
    CreateOfferRequest,
    OfferEnvelope,
    OfferListResponse,
    UpdateOfferStatusRequest,
)
from app.schemas.common import ErrorResponse
from app.services.offer_service import offer_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/offers", tags=["Offers"])


@router.post(
    "",
    response_model=OfferEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Product is not a Buying listing", "model": ErrorResponse},
        404: {"description": "Product not found", "model": ErrorResponse},
    },
    summary="Offer items to a shop",
)
async def create_offer(
    body: CreateOfferRequest,
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> OfferEnvelope:
    return OfferEnvelope(offer=await offer_service.create_offer(db, user.id, body))


@router.get("", response_model=OfferListResponse, summary="The customer's offers")
async def list_my_offers(
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> OfferListResponse:
    return OfferListResponse(offers=await offer_service.list_user_offers(db, user.id))


@router.get("/shop", response_model=OfferListResponse, summary="Offers received by the owner's shops")
async def list_shop_offers(
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> OfferListResponse:
    return OfferListResponse(offers=await offer_service.list_owner_offers(db, owner.id))


@router.put(
    "/{offer_id}/status",
    response_model=OfferEnvelope,
    responses={
        403: {"description": "Offer is for another owner's product", "model": ErrorResponse},
        404: {"description": "Offer not found", "model": ErrorResponse},
    },
    summary="Accept, reject or reopen an offer",
)
async def update_offer_status(
    offer_id: uuid.UUID,
    body: UpdateOfferStatusRequest,
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> OfferEnvelope:
    return OfferEnvelope(offer=await offer_service.update_status(db, owner.id, offer_id, body.status))
