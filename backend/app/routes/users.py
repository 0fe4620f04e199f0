"""
JunkHub Backend — Customer Route Handlers
===========================================

What:  The signed-in customer's profile, password, wishlist, order history
       and reviews.
Who:   Called by the frontend profile pages. Every route requires the user
       role.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import UserIdentity, require_user
from app.database import get_db_session
from app.models.enums import Role
from app.schemas.accounts import ChangePasswordRequest, UpdateUserProfileRequest, UserEnvelope
from app.schemas.catalog import (
    ReviewEnvelope,
    ReviewListResponse,
    ReviewRequest,
    WishlistIdsResponse,
    WishlistResponse,
    WishlistToggleRequest,
)
from app.schemas.commerce import OrderListResponse
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.account_service import account_service
from app.services.order_service import order_service
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


# ── Profile ───────────────────────────────────────────────────────────────

@router.get("/profile", response_model=UserEnvelope, summary="Current customer profile")
async def get_profile(
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    return UserEnvelope(user=await account_service.get_account(db, Role.USER, user.id))


@router.put("/profile", response_model=UserEnvelope, summary="Update the customer profile")
async def update_profile(
    body: UpdateUserProfileRequest,
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    return UserEnvelope(user=await account_service.update_user_profile(db, user.id, body))


@router.put(
    "/password",
    response_model=MessageResponse,
    responses={400: {"description": "Current password is incorrect", "model": ErrorResponse}},
    summary="Change password",
)
async def change_password(
    body: ChangePasswordRequest,
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await account_service.change_password(db, Role.USER, user.id, body.current_password, body.new_password)
    return MessageResponse(message="Password updated successfully")


# ── Wishlist ──────────────────────────────────────────────────────────────

@router.get("/wishlist", response_model=WishlistResponse, summary="Wishlist products")
async def get_wishlist(
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> WishlistResponse:
    return WishlistResponse(wishlist=await user_service.get_wishlist(db, user.id))


@router.put(
    "/wishlist",
    response_model=WishlistIdsResponse,
    summary="Add a product to the wishlist, or remove it if already present",
)
async def toggle_wishlist(
    body: WishlistToggleRequest,
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> WishlistIdsResponse:
    return WishlistIdsResponse(wishlist=await user_service.toggle_wishlist(db, user.id, body.product_id))


# ── Orders & Reviews ──────────────────────────────────────────────────────

@router.get("/orders", response_model=OrderListResponse, summary="Customer order history")
async def list_orders(
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> OrderListResponse:
    return OrderListResponse(orders=await order_service.list_user_orders(db, user.id))


@router.post(
    "/reviews",
    response_model=ReviewEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"description": "Existing review updated", "model": ReviewEnvelope},
        403: {"description": "No completed order contains this product", "model": ErrorResponse},
        404: {"description": "Product not found", "model": ErrorResponse},
    },
    summary="Review a purchased product",
)
async def submit_review(
    body: ReviewRequest,
    response: Response,
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewEnvelope:
    """201 when the review is new, 200 when an existing one was updated."""
    review, created = await user_service.submit_review(db, user.id, body)
    if not created:
        response.status_code = status.HTTP_200_OK
    return ReviewEnvelope(review=review, message="Review submitted" if created else "Review updated")


@router.get("/reviews", response_model=ReviewListResponse, summary="The customer's own reviews")
async def list_reviews(
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReviewListResponse:
    return ReviewListResponse(reviews=await user_service.list_reviews(db, user.id))
