"""
JunkHub Backend — Dashboard Schemas
=====================================

Aggregates shown on the owner dashboard and the admin console.
"""

import uuid
from datetime import datetime
from typing import List, Literal

from app.schemas.accounts import OwnerOut, UserOut
from app.schemas.catalog import ProductOut
from app.schemas.common import CamelModel


class OwnerStats(CamelModel):
    period: str
    total_sales: float
    total_orders: int
    pending_offers: int
    active_products: int


class OwnerStatsResponse(CamelModel):
    stats: OwnerStats


class ActivityItem(CamelModel):
    id: uuid.UUID
    type: Literal["order", "offer"]
    message: str
    status: str
    time: datetime


class ActivityResponse(CamelModel):
    activity: List[ActivityItem]


class AdminUserRow(UserOut):
    order_count: int = 0


class AdminUserListResponse(CamelModel):
    users: List[AdminUserRow]
    total: int


class AdminOwnerRow(OwnerOut):
    shop_count: int = 0


class AdminOwnerListResponse(CamelModel):
    owners: List[AdminOwnerRow]
    total: int


class AdminStats(CamelModel):
    total_users: int
    total_owners: int
    pending_owners: int
    total_products: int
    pending_products: int
    total_orders: int
    total_revenue: float


class AdminStatsResponse(CamelModel):
    stats: AdminStats


class OwnerApprovalResponse(CamelModel):
    message: str
    owner: OwnerOut


class ProductModerationResponse(CamelModel):
    message: str
    product: ProductOut
