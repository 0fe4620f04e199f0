"""
JunkHub Backend — Order and Offer Schemas
===========================================
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import Field, StringConstraints

from app.models.enums import OfferStatus, OrderStatus
from app.schemas.catalog import ProductOut
from app.schemas.common import CamelModel, ImageDataURI, NonEmptyStr

ContactNumber = Annotated[str, StringConstraints(strip_whitespace=True, min_length=7, max_length=20)]


# ══════════════════════════════════════════════════════════════════════════
# Orders
# ══════════════════════════════════════════════════════════════════════════

class OrderLineRequest(CamelModel):
    product_id: uuid.UUID
    quantity: int = Field(gt=0)


class CreateOrderRequest(CamelModel):
    items: List[OrderLineRequest] = Field(min_length=1)
    shipping_address: NonEmptyStr
    shipping_city: NonEmptyStr
    shipping_zip: NonEmptyStr


class UpdateOrderStatusRequest(CamelModel):
    status: OrderStatus


class OrderItemOut(CamelModel):
    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    quantity: int
    price: float
    product: Optional[ProductOut] = None


class CustomerRef(CamelModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None


class OrderOut(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    total: float
    status: OrderStatus
    shipping_address: str
    shipping_city: str
    shipping_zip: str
    receipt_number: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    items: List[OrderItemOut] = []
    user: Optional[CustomerRef] = None


class OrderEnvelope(CamelModel):
    order: OrderOut


class OrderListResponse(CamelModel):
    orders: List[OrderOut]


class ConfirmOrderResponse(CamelModel):
    message: str
    receipt_number: str
    order: OrderOut


# ══════════════════════════════════════════════════════════════════════════
# Offers
# ══════════════════════════════════════════════════════════════════════════

class CreateOfferRequest(CamelModel):
    product_id: uuid.UUID
    quantity: int = Field(gt=0)
    contact_number: ContactNumber
    description: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]] = None
    images: List[ImageDataURI] = []


class UpdateOfferStatusRequest(CamelModel):
    status: OfferStatus


class OfferOut(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    contact_number: str
    description: Optional[str] = None
    images: List[str] = []
    status: OfferStatus
    created_at: datetime
    product: Optional[ProductOut] = None
    user: Optional[CustomerRef] = None


class OfferEnvelope(CamelModel):
    offer: OfferOut


class OfferListResponse(CamelModel):
    offers: List[OfferOut]
