"""
JunkHub Backend — Admin Route Handlers
========================================

What:  Account listings, owner approval, product moderation, platform
       stats, hard deletes and the admin's own profile.
Who:   Called by the admin console. Every route requires the admin role.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import AdminIdentity, require_admin
from app.database import get_db_session
from app.models.enums import ProductStatus, Role
from app.schemas.accounts import AdminEnvelope, ChangePasswordRequest, UpdateAdminProfileRequest
from app.schemas.catalog import AdminProductListResponse, RejectProductRequest
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.dashboards import (
    AdminOwnerListResponse,
    AdminOwnerRow,
    AdminStatsResponse,
    AdminUserListResponse,
    AdminUserRow,
    OwnerApprovalResponse,
    ProductModerationResponse,
)
from app.services.account_service import account_service
from app.services.admin_service import admin_service
from app.services.product_service import ProductFilters, product_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

_NOT_FOUND = {404: {"description": "Not found", "model": ErrorResponse}}


# ══════════════════════════════════════════════════════════════════════════
# Accounts
# ══════════════════════════════════════════════════════════════════════════

@router.get("/users", response_model=AdminUserListResponse, summary="All customers with order counts")
async def list_users(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdminUserListResponse:
    rows, total = await admin_service.list_users(db, limit=limit, offset=offset)
    users = [
        AdminUserRow.model_validate(user).model_copy(update={"order_count": count})
        for user, count in rows
    ]
    return AdminUserListResponse(users=users, total=total)


@router.get("/owners", response_model=AdminOwnerListResponse, summary="All owners with shop counts")
async def list_owners(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdminOwnerListResponse:
    rows, total = await admin_service.list_owners(db, limit=limit, offset=offset)
    owners = [
        AdminOwnerRow.model_validate(owner).model_copy(update={"shop_count": count})
        for owner, count in rows
    ]
    return AdminOwnerListResponse(owners=owners, total=total)


@router.put(
    "/owners/{owner_id}/approve",
    response_model=OwnerApprovalResponse,
    responses=_NOT_FOUND,
    summary="Approve an owner account",
)
async def approve_owner(
    owner_id: uuid.UUID,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> OwnerApprovalResponse:
    owner = await admin_service.approve_owner(db, owner_id)
    return OwnerApprovalResponse(message="Owner approved successfully", owner=owner)


@router.delete("/users/{user_id}", response_model=MessageResponse, responses=_NOT_FOUND, summary="Delete a customer")
async def delete_user(
    user_id: uuid.UUID,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await admin_service.delete_user(db, user_id)
    return MessageResponse(message="User deleted successfully")


@router.delete(
    "/owners/{owner_id}",
    response_model=MessageResponse,
    responses=_NOT_FOUND,
    summary="Delete an owner with their shops and products",
)
async def delete_owner(
    owner_id: uuid.UUID,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await admin_service.delete_owner(db, owner_id)
    return MessageResponse(message="Owner deleted successfully")


# ══════════════════════════════════════════════════════════════════════════
# Products
# ══════════════════════════════════════════════════════════════════════════

@router.get(
    "/products",
    response_model=AdminProductListResponse,
    summary="Products in any status, with per-status counts",
)
async def list_products(
    status: Optional[str] = Query(default=None, pattern="^(all|pending|approved|rejected)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdminProductListResponse:
    filters = ProductFilters(status=ProductStatus(status) if status and status != "all" else None)
    products, total = await product_service.search(db, filters, limit=limit, offset=offset)
    counts = await product_service.status_counts(db)
    return AdminProductListResponse(products=products, total=total, status_counts=counts)


@router.put(
    "/products/{product_id}/approve",
    response_model=ProductModerationResponse,
    responses=_NOT_FOUND,
    summary="Approve a product (makes it public)",
)
async def approve_product(
    product_id: uuid.UUID,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ProductModerationResponse:
    product = await product_service.set_status(db, product_id, ProductStatus.APPROVED)
    return ProductModerationResponse(message="Product approved successfully", product=product)


@router.put(
    "/products/{product_id}/reject",
    response_model=ProductModerationResponse,
    responses=_NOT_FOUND,
    summary="Reject a product, optionally with a reason",
)
async def reject_product(
    product_id: uuid.UUID,
    body: Optional[RejectProductRequest] = None,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ProductModerationResponse:
    reason = body.reason if body else None
    product = await product_service.set_status(db, product_id, ProductStatus.REJECTED, reason)
    return ProductModerationResponse(message="Product rejected successfully", product=product)


@router.delete(
    "/products/{product_id}",
    response_model=MessageResponse,
    responses=_NOT_FOUND,
    summary="Delete any product",
)
async def delete_product(
    product_id: uuid.UUID,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await product_service.delete_any(db, product_id)
    return MessageResponse(message="Product deleted successfully")


# ══════════════════════════════════════════════════════════════════════════
# Stats & Profile
# ══════════════════════════════════════════════════════════════════════════

@router.get("/stats", response_model=AdminStatsResponse, summary="Platform totals")
async def stats(
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdminStatsResponse:
    return AdminStatsResponse(stats=await admin_service.stats(db))


@router.get("/profile", response_model=AdminEnvelope, summary="Admin profile")
async def get_profile(
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdminEnvelope:
    return AdminEnvelope(admin=await account_service.get_account(db, Role.ADMIN, admin.id))


@router.put(
    "/profile",
    response_model=AdminEnvelope,
    responses={400: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Update the admin profile",
)
async def update_profile(
    body: UpdateAdminProfileRequest,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdminEnvelope:
    return AdminEnvelope(admin=await account_service.update_admin_profile(db, admin.id, body))


@router.put(
    "/profile/password",
    response_model=MessageResponse,
    responses={400: {"description": "Current password is incorrect", "model": ErrorResponse}},
    summary="Change the admin password",
)
async def change_password(
    body: ChangePasswordRequest,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await account_service.change_password(db, Role.ADMIN, admin.id, body.current_password, body.new_password)
    return MessageResponse(message="Password updated successfully")
