"""
JunkHub Backend — Shop Route Handlers
=======================================

What:  Public shop browsing and owner shop management.
Who:   Called by the storefront (public) and the owner dashboard.

Route order matters: `/owner/my-shops` is declared before `/{shop_id}` so
the literal path is never parsed as an id.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import OwnerIdentity, require_owner
from app.database import get_db_session
from app.schemas.catalog import (
    ShopCreateRequest,
    ShopDetail,
    ShopDetailEnvelope,
    ShopEnvelope,
    ShopListResponse,
    ShopOwnerSummary,
    ShopSummary,
    ShopUpdateRequest,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.shop_service import shop_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shops", tags=["Shops"])

_OWNED_RESPONSES = {
    403: {"description": "Shop belongs to another owner", "model": ErrorResponse},
    404: {"description": "Shop not found", "model": ErrorResponse},
}


def _shop_fields(shop) -> dict:
    return {
        "id": shop.id,
        "owner_id": shop.owner_id,
        "name": shop.name,
        "description": shop.description,
        "business_address": shop.business_address,
        "logo": shop.logo,
        "created_at": shop.created_at,
    }


def _summary(shop, product_count: int, with_owner: bool = True) -> ShopSummary:
    """`with_owner` requires `shop.owner` to be loaded."""
    fields = _shop_fields(shop)
    if with_owner:
        fields["owner"] = ShopOwnerSummary.model_validate(shop.owner)
    return ShopSummary(**fields, product_count=product_count)


@router.get("", response_model=ShopListResponse, summary="Browse shops")
async def list_shops(
    search: Optional[str] = Query(default=None, description="Matches name or description"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> ShopListResponse:
    rows, total = await shop_service.list_shops(db, search=search, limit=limit, offset=offset)
    return ShopListResponse(shops=[_summary(shop, count) for shop, count in rows], total=total)


@router.get(
    "/owner/my-shops",
    response_model=ShopListResponse,
    summary="The signed-in owner's shops",
    description="An approved owner without a shop gets one created from their business profile.",
)
async def my_shops(
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> ShopListResponse:
    rows = await shop_service.my_shops(db, owner.id)
    shops = [_summary(shop, count, with_owner=False) for shop, count in rows]
    return ShopListResponse(shops=shops, total=len(shops))


@router.get(
    "/{shop_id}",
    response_model=ShopDetailEnvelope,
    responses={404: {"description": "Shop not found", "model": ErrorResponse}},
    summary="Shop detail with its newest approved products",
)
async def get_shop(shop_id: uuid.UUID, db: AsyncSession = Depends(get_db_session)) -> ShopDetailEnvelope:
    shop, products = await shop_service.get_shop_detail(db, shop_id)
    detail = ShopDetail(
        **_shop_fields(shop),
        owner=ShopOwnerSummary.model_validate(shop.owner),
        products=products,
    )
    return ShopDetailEnvelope(shop=detail)


@router.post("", response_model=ShopEnvelope, status_code=status.HTTP_201_CREATED, summary="Open a shop")
async def create_shop(
    body: ShopCreateRequest,
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> ShopEnvelope:
    return ShopEnvelope(shop=await shop_service.create_shop(db, owner.id, body))


@router.put("/{shop_id}", response_model=ShopEnvelope, responses=_OWNED_RESPONSES, summary="Edit a shop")
async def update_shop(
    shop_id: uuid.UUID,
    body: ShopUpdateRequest,
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> ShopEnvelope:
    return ShopEnvelope(shop=await shop_service.update_shop(db, owner.id, shop_id, body))


@router.delete(
    "/{shop_id}",
    response_model=MessageResponse,
    responses=_OWNED_RESPONSES,
    summary="Delete a shop and all of its products",
)
async def delete_shop(
    shop_id: uuid.UUID,
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await shop_service.delete_shop(db, owner.id, shop_id)
    return MessageResponse(message="Shop deleted successfully")
