"""
JunkHub Backend — Owner Dashboard Route Handlers
==================================================

What:  Stats, activity feed, product and order lists, and the profile of
       the signed-in shop owner.
Who:   Called by the owner dashboard. Every route requires an approved owner.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import OwnerIdentity, require_owner
from app.database import get_db_session
from app.models.enums import OrderStatus, ProductType, Role
from app.schemas.accounts import OwnerEnvelope, UpdateOwnerProfileRequest
from app.schemas.catalog import ProductListResponse
from app.schemas.commerce import OrderListResponse
from app.schemas.common import ErrorResponse
from app.schemas.dashboards import ActivityResponse, OwnerStatsResponse
from app.services.account_service import account_service
from app.services.order_service import order_service
from app.services.owner_dashboard_service import DEFAULT_PERIOD, owner_dashboard_service
from app.services.product_service import ProductFilters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/owner", tags=["Owner Dashboard"])


@router.get("/stats", response_model=OwnerStatsResponse, summary="Headline numbers for a period")
async def stats(
    period: str = Query(default=DEFAULT_PERIOD, pattern="^(7d|30d|1y)$"),
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> OwnerStatsResponse:
    return OwnerStatsResponse(stats=await owner_dashboard_service.stats(db, owner.id, period))


@router.get("/activity", response_model=ActivityResponse, summary="Recent orders and offers")
async def activity(
    limit: int = Query(default=10, ge=1, le=100),
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> ActivityResponse:
    return ActivityResponse(activity=await owner_dashboard_service.activity(db, owner.id, limit))


@router.get("/products", response_model=ProductListResponse, summary="All of the owner's products")
async def products(
    search: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    type: Optional[ProductType] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> ProductListResponse:
    filters = ProductFilters(search=search, category=category, type=type)
    items, total = await owner_dashboard_service.products(db, owner.id, filters, limit=limit, offset=offset)
    return ProductListResponse(products=items, total=total)


@router.get("/orders", response_model=OrderListResponse, summary="Orders containing the owner's products")
async def orders(
    status: Optional[OrderStatus] = Query(default=None),
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> OrderListResponse:
    return OrderListResponse(orders=await order_service.list_owner_orders(db, owner.id, status))


@router.get("/profile", response_model=OwnerEnvelope, summary="Owner profile")
async def get_profile(
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> OwnerEnvelope:
    return OwnerEnvelope(owner=await account_service.get_account(db, Role.OWNER, owner.id))


@router.put(
    "/profile",
    response_model=OwnerEnvelope,
    responses={400: {"description": "Current password missing or incorrect", "model": ErrorResponse}},
    summary="Update the owner profile, optionally changing the password",
)
async def update_profile(
    body: UpdateOwnerProfileRequest,
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> OwnerEnvelope:
    return OwnerEnvelope(owner=await account_service.update_owner_profile(db, owner.id, body))
