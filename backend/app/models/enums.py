"""
JunkHub Backend — Domain Enumerations
=======================================

String-valued enums shared by models, schemas and services. Values are the
exact strings stored in the database and sent over the wire.
"""

from enum import Enum


class Role(str, Enum):
    USER = "user"
    OWNER = "owner"
    ADMIN = "admin"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class ProductStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProductType(str, Enum):
    # "Buying": the shop buys this item from users (users send offers)
    # "Selling": the shop sells this item (users place orders)
    BUYING = "Buying"
    SELLING = "Selling"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses an owner may set directly; COMPLETED is reached only by the
# customer confirming receipt
OWNER_SETTABLE_ORDER_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
)


class OfferStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    ORDER = "order"
    OFFER = "offer"
    APPROVAL = "approval"


class SenderType(str, Enum):
    USER = "user"
    OWNER = "owner"
