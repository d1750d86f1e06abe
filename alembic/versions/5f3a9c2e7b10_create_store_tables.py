"""create_store_tables

Revision ID: 5f3a9c2e7b10
Revises:
Create Date: 2026-01-04 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


# revision identifiers, used by Alembic.
revision: str = "5f3a9c2e7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


order_status_enum = sa.Enum(
    "pending",
    "processing",
    "shipped",
    "delivered",
    "cancelled",
    "refunded",
    name="order_status_enum",
)
payment_status_enum = sa.Enum(
    "pending", "paid", "failed", "refunded", name="payment_status_enum"
)
discount_type_enum = sa.Enum("percentage", "fixed_usd", name="discount_type_enum")
address_type_enum = sa.Enum("shipping", "billing", name="address_type_enum")
checkout_step_name_enum = sa.Enum(
    "mark_paid",
    "record_transaction",
    "send_confirmation",
    "decrement_inventory",
    "clear_cart",
    name="checkout_step_name_enum",
)
checkout_step_status_enum = sa.Enum(
    "pending", "completed", "failed", name="checkout_step_status_enum"
)
email_status_enum = sa.Enum("sent", "failed", "rejected", name="email_status_enum")


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=True)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True))
    return columns


def upgrade() -> None:
    """Upgrade schema - storefront catalog, commerce, accounts and email log."""

    # Catalog
    op.create_table(
        "categories",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("display_order", sa.Integer(), server_default="0", nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("category_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("sku", sa.String(100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("compare_at_price_usd", sa.Numeric(12, 2), nullable=True),
        sa.Column("inventory_quantity", sa.Integer(), server_default="0", nullable=True),
        sa.Column("track_inventory", sa.Boolean(), nullable=True),
        sa.Column("low_stock_threshold", sa.Integer(), server_default="5", nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("is_featured", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
        sa.UniqueConstraint("sku"),
    )
    op.create_index("ix_products_category_id", "products", ["category_id"])

    op.create_table(
        "product_images",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("image_url", sa.String(1024), nullable=False),
        sa.Column("alt_text", sa.String(255), nullable=True),
        sa.Column("display_order", sa.Integer(), server_default="0", nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_product_images_product_id", "product_images", ["product_id"])

    op.create_table(
        "product_variants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("size", sa.String(50), nullable=True),
        sa.Column("color", sa.String(50), nullable=True),
        sa.Column("sku", sa.String(100), nullable=True),
        sa.Column(
            "price_adjustment_usd", sa.Numeric(12, 2), server_default="0", nullable=True
        ),
        sa.Column("inventory_quantity", sa.Integer(), server_default="0", nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sku"),
    )
    op.create_index(
        "ix_product_variants_product_id", "product_variants", ["product_id"]
    )

    # Accounts
    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("nationality", sa.String(100), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"])

    op.create_table(
        "addresses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("address_type", address_type_enum, nullable=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address_line1", sa.String(255), nullable=False),
        sa.Column("address_line2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("postal_code", sa.String(20), nullable=True),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_addresses_user_id", "addresses", ["user_id"])

    # Commerce
    op.create_table(
        "coupons",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("discount_type", discount_type_enum, nullable=False),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("minimum_purchase_usd", sa.Numeric(12, 2), nullable=True),
        sa.Column("maximum_discount_usd", sa.Numeric(12, 2), nullable=True),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("usage_count", sa.Integer(), server_default="0", nullable=True),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("discount_value > 0", name="coupons_positive_value"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "cart_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("session_id", sa.String(255), nullable=True),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("variant_id", sa.Uuid(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="cart_items_positive_quantity"),
        sa.CheckConstraint(
            "(user_id IS NOT NULL AND session_id IS NULL) OR "
            "(user_id IS NULL AND session_id IS NOT NULL)",
            name="cart_items_single_owner",
        ),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["variant_id"], ["product_variants.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cart_items_user_id", "cart_items", ["user_id"])
    op.create_index("ix_cart_items_session_id", "cart_items", ["session_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("order_number", sa.String(30), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("guest_session_id", sa.String(255), nullable=True),
        sa.Column("customer_email", sa.String(255), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_phone", sa.String(50), nullable=True),
        sa.Column("customer_nationality", sa.String(100), nullable=True),
        sa.Column("shipping_address", JSONB(), nullable=True),
        sa.Column("billing_address", JSONB(), nullable=True),
        sa.Column("coupon_code", sa.String(50), nullable=True),
        sa.Column("coupon_id", sa.Uuid(), nullable=True),
        sa.Column("subtotal_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("discount_usd", sa.Numeric(12, 2), server_default="0", nullable=True),
        sa.Column("shipping_usd", sa.Numeric(12, 2), server_default="0", nullable=True),
        sa.Column("tax_usd", sa.Numeric(12, 2), server_default="0", nullable=True),
        sa.Column("total_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("exchange_rate", sa.Numeric(12, 4), nullable=True),
        sa.Column("total_ngn", sa.Numeric(14, 2), nullable=True),
        sa.Column("currency_paid", sa.String(3), server_default="USD", nullable=True),
        sa.Column(
            "status", order_status_enum, server_default="pending", nullable=True
        ),
        sa.Column(
            "payment_status", payment_status_enum, server_default="pending", nullable=True
        ),
        sa.Column("payment_reference", sa.String(100), nullable=True),
        sa.Column("tracking_number", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shipped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["coupon_id"], ["coupons.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_orders_order_number", "orders", ["order_number"], unique=True)
    op.create_index("ix_orders_user_id", "orders", ["user_id"])
    op.create_index("ix_orders_guest_session_id", "orders", ["guest_session_id"])
    op.create_index("ix_orders_payment_reference", "orders", ["payment_reference"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("order_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=True),
        sa.Column("variant_id", sa.Uuid(), nullable=True),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("product_sku", sa.String(100), nullable=True),
        sa.Column("variant_size", sa.String(50), nullable=True),
        sa.Column("variant_color", sa.String(50), nullable=True),
        sa.Column("price_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("subtotal_usd", sa.Numeric(12, 2), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(
            ["variant_id"], ["product_variants.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])

    op.create_table(
        "payment_transactions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("order_id", sa.Uuid(), nullable=False),
        sa.Column("paystack_reference", sa.String(100), nullable=False),
        sa.Column("amount_ngn", sa.Numeric(14, 2), nullable=True),
        sa.Column("amount_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("exchange_rate", sa.Numeric(12, 4), nullable=True),
        sa.Column("status", sa.String(30), nullable=False),
        sa.Column("payment_channel", sa.String(50), nullable=True),
        sa.Column("customer_email", sa.String(255), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("gateway_response", JSONB(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("paystack_reference"),
    )
    op.create_index(
        "ix_payment_transactions_order_id", "payment_transactions", ["order_id"]
    )

    op.create_table(
        "order_checkout_steps",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("order_id", sa.Uuid(), nullable=False),
        sa.Column("step", checkout_step_name_enum, nullable=False),
        sa.Column(
            "status", checkout_step_status_enum, server_default="pending", nullable=True
        ),
        sa.Column("attempts", sa.Integer(), server_default="0", nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("context", JSONB(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_id", "step", name="uq_order_checkout_step"),
    )
    op.create_index(
        "ix_order_checkout_steps_order_id", "order_checkout_steps", ["order_id"]
    )

    # Communications
    op.create_table(
        "email_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email_type", sa.String(50), nullable=True),
        sa.Column("recipient", sa.String(255), nullable=True),
        sa.Column("order_id", sa.String(64), nullable=True),
        sa.Column("order_number", sa.String(30), nullable=True),
        sa.Column("subject", sa.String(255), nullable=True),
        sa.Column("status", email_status_enum, nullable=False),
        sa.Column("provider_id", sa.String(100), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_email_logs_order_id", "email_logs", ["order_id"])


def downgrade() -> None:
    """Downgrade schema - drop everything created above."""
    for table in (
        "email_logs",
        "order_checkout_steps",
        "payment_transactions",
        "order_items",
        "orders",
        "cart_items",
        "coupons",
        "addresses",
        "profiles",
        "product_variants",
        "product_images",
        "products",
        "categories",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (
        email_status_enum,
        checkout_step_status_enum,
        checkout_step_name_enum,
        address_type_enum,
        discount_type_enum,
        payment_status_enum,
        order_status_enum,
    ):
        enum.drop(bind, checkfirst=True)
