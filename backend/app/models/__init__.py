"""
JunkHub Backend — ORM Models
==============================

Importing this package registers every table with `Base.metadata`, which
Alembic autogenerate and the test suite rely on.
"""

from app.models.accounts import Admin, Owner, User
from app.models.catalog import Product, Review, Shop
from app.models.commerce import Offer, Order, OrderItem
from app.models.messaging import Chat, Message, Notification
from app.models.password_reset import PasswordResetToken

__all__ = [
    "Admin",
    "Chat",
    "Message",
    "Notification",
    "Offer",
    "Order",
    "OrderItem",
    "Owner",
    "PasswordResetToken",
    "Product",
    "Review",
    "Shop",
    "User",
]
