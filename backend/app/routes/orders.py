"""
JunkHub Backend — Order Route Handlers
========================================

What:  Customer checkout, order history, cancellation and delivery
       confirmation; owner status updates.
Who:   Called by the checkout and order pages (user) and the owner
       dashboard (status updates).
"""

import logging
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import OwnerIdentity, UserIdentity, require_owner, require_user
from app.database import get_db_session
from app.exceptions import ValidationError
from app.models.enums import OWNER_SETTABLE_ORDER_STATUSES
from app.schemas.commerce import (
    ConfirmOrderResponse,
    CreateOrderRequest,
    OrderEnvelope,
    OrderListResponse,
    UpdateOrderStatusRequest,
)
from app.schemas.common import ErrorResponse
from app.services.order_service import order_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])

_MINE_RESPONSES = {
    403: {"description": "Order belongs to another customer", "model": ErrorResponse},
    404: {"description": "Order not found", "model": ErrorResponse},
}


@router.get("", response_model=OrderListResponse, summary="The customer's orders, newest first")
async def list_orders(
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> OrderListResponse:
    return OrderListResponse(orders=await order_service.list_user_orders(db, user.id))


@router.get("/{order_id}", response_model=OrderEnvelope, responses=_MINE_RESPONSES, summary="One order")
async def get_order(
    order_id: uuid.UUID,
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> OrderEnvelope:
    return OrderEnvelope(order=await order_service.get_user_order(db, user.id, order_id))


@router.post(
    "",
    response_model=OrderEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid input or insufficient stock", "model": ErrorResponse},
        404: {"description": "A product does not exist", "model": ErrorResponse},
    },
    summary="Place an order",
    description=(
        "Validates every line before writing anything. On success stock is decremented, "
        "unit prices are snapshotted and each supplying shop owner is notified once."
    ),
)
async def create_order(
    body: CreateOrderRequest,
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> OrderEnvelope:
    return OrderEnvelope(order=await order_service.create_order(db, user.id, body))


@router.put(
    "/{order_id}/cancel",
    response_model=OrderEnvelope,
    responses={**_MINE_RESPONSES, 400: {"description": "Order is not pending", "model": ErrorResponse}},
    summary="Cancel a pending order",
)
async def cancel_order(
    order_id: uuid.UUID,
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> OrderEnvelope:
    return OrderEnvelope(order=await order_service.cancel_order(db, user.id, order_id))


@router.put(
    "/{order_id}/confirm",
    response_model=ConfirmOrderResponse,
    responses={
        **_MINE_RESPONSES,
        400: {"description": "Not delivered yet, or already confirmed", "model": ErrorResponse},
    },
    summary="Confirm receipt of a delivered order",
)
async def confirm_order(
    order_id: uuid.UUID,
    user: UserIdentity = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> ConfirmOrderResponse:
    order = await order_service.confirm_order(db, user.id, order_id)
    return ConfirmOrderResponse(
        message="Order confirmed successfully",
        receipt_number=order.receipt_number,
        order=order,
    )


@router.put(
    "/{order_id}/status",
    response_model=OrderEnvelope,
    responses={
        403: {"description": "None of the order's items come from the owner's shops", "model": ErrorResponse},
        404: {"description": "Order not found", "model": ErrorResponse},
    },
    summary="Owner: move an order to a new status",
)
async def update_order_status(
    order_id: uuid.UUID,
    body: UpdateOrderStatusRequest,
    owner: OwnerIdentity = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> OrderEnvelope:
    if body.status not in OWNER_SETTABLE_ORDER_STATUSES:
        raise ValidationError(
            "Invalid status",
            field="status",
            details=[{"field": "status", "message": "Completed is set by customer confirmation"}],
        )
    return OrderEnvelope(order=await order_service.update_status(db, owner.id, order_id, body.status))
