"""Create marketplace tables

Revision ID: 001
Revises: None
Create Date: 2025-01-10 00:00:00.000000+00:00

What:  Creates every JunkHub table: accounts, shops, products, reviews,
       orders and their items, offers, chats, messages, notifications and
       password reset tokens.
How:   Parent rows cascade to their children through ON DELETE CASCADE,
       except order_items.product_id which is SET NULL so order history
       outlives a deleted product.

Rollback: downgrade() drops all tables in reverse dependency order.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False, primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _fk(name: str, target: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    # ── Accounts ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("profile_pic", sa.Text(), nullable=True),
        sa.Column("wishlist", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        _created_at(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "owners",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("business_name", sa.String(200), nullable=False),
        sa.Column("business_address", sa.Text(), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("profile_pic", sa.Text(), nullable=True),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
    )
    op.create_index("ix_owners_email", "owners", ["email"], unique=True)

    op.create_table(
        "admins",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("profile_pic", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_admins_email", "admins", ["email"], unique=True)

    # ── Catalog ───────────────────────────────────────────────────────────
    op.create_table(
        "shops",
        _id(),
        _fk("owner_id", "owners.id"),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("business_address", sa.Text(), nullable=False),
        sa.Column("logo", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_shops_owner_id", "shops", ["owner_id"])

    op.create_table(
        "products",
        _id(),
        _fk("shop_id", "shops.id"),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("type", sa.String(20), nullable=False, server_default=sa.text("'Selling'")),
        sa.Column("images", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        _created_at(),
        sa.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        sa.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )
    op.create_index("ix_products_shop_id", "products", ["shop_id"])
    op.create_index("ix_products_category", "products", ["category"])
    op.create_index("ix_products_status", "products", ["status"])
    op.create_index("idx_products_created_at", "products", ["created_at"])

    op.create_table(
        "reviews",
        _id(),
        _fk("user_id", "users.id"),
        _fk("product_id", "products.id"),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        _created_at(),
        sa.UniqueConstraint("user_id", "product_id", name="uq_reviews_user_product"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )
    op.create_index("ix_reviews_user_id", "reviews", ["user_id"])
    op.create_index("ix_reviews_product_id", "reviews", ["product_id"])

    # ── Commerce ──────────────────────────────────────────────────────────
    op.create_table(
        "orders",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("total", sa.Float(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("shipping_address", sa.Text(), nullable=False),
        sa.Column("shipping_city", sa.String(100), nullable=False),
        sa.Column("shipping_zip", sa.String(20), nullable=False),
        sa.Column("receipt_number", sa.String(32), nullable=True, unique=True),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_orders_user_id", "orders", ["user_id"])
    op.create_index("ix_orders_status", "orders", ["status"])

    op.create_table(
        "order_items",
        _id(),
        _fk("order_id", "orders.id"),
        _fk("product_id", "products.id", nullable=True, ondelete="SET NULL"),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_index("ix_order_items_product_id", "order_items", ["product_id"])

    op.create_table(
        "offers",
        _id(),
        _fk("user_id", "users.id"),
        _fk("product_id", "products.id"),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("contact_number", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        _created_at(),
        sa.CheckConstraint("quantity > 0", name="ck_offers_quantity_positive"),
    )
    op.create_index("ix_offers_user_id", "offers", ["user_id"])
    op.create_index("ix_offers_product_id", "offers", ["product_id"])
    op.create_index("ix_offers_status", "offers", ["status"])

    # ── Messaging ─────────────────────────────────────────────────────────
    op.create_table(
        "chats",
        _id(),
        _fk("order_id", "orders.id"),
        _fk("user_id", "users.id"),
        _fk("owner_id", "owners.id"),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.UniqueConstraint("order_id", name="uq_chats_order_id"),
    )
    op.create_index("ix_chats_user_id", "chats", ["user_id"])
    op.create_index("ix_chats_owner_id", "chats", ["owner_id"])

    op.create_table(
        "messages",
        _id(),
        _fk("chat_id", "chats.id"),
        sa.Column("sender_type", sa.String(10), nullable=False),
        sa.Column("sender_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
    )
    op.create_index("idx_messages_chat_created", "messages", ["chat_id", "created_at"])

    op.create_table(
        "notifications",
        _id(),
        _fk("user_id", "users.id", nullable=True),
        _fk("owner_id", "owners.id", nullable=True),
        _fk("admin_id", "admins.id", nullable=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.String(255), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
        sa.CheckConstraint(
            "(CASE WHEN user_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN owner_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN admin_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_notifications_single_recipient",
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_owner_id", "notifications", ["owner_id"])
    op.create_index("ix_notifications_admin_id", "notifications", ["admin_id"])

    # ── Password reset ────────────────────────────────────────────────────
    op.create_table(
        "password_reset_tokens",
        sa.Column("token_hash", sa.String(64), nullable=False, primary_key=True),
        sa.Column("role", sa.String(10), nullable=False),
        sa.Column("account_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        _created_at(),
    )
    op.create_index("ix_password_reset_tokens_account_id", "password_reset_tokens", ["account_id"])


def downgrade() -> None:
    for table in (
        "password_reset_tokens",
        "notifications",
        "messages",
        "chats",
        "offers",
        "order_items",
        "orders",
        "reviews",
        "products",
        "shops",
        "admins",
        "owners",
        "users",
    ):
        op.drop_table(table)
