"""Initial marketplace schema

Revision ID: 001
Revises: None
Create Date: 2024-06-01 00:00:00.000000+00:00

What:  Users and profiles, partner stores, the canonical catalog with
       per-store offerings, and orders with their line items.
How:   Portable column types (sa.Uuid, JSON, timezone-aware DateTime) so the
       same migration runs on PostgreSQL and SQLite. UUIDs are generated by
       the application.

Rollback: downgrade() drops every table (destructive, all data lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # ── Users & profiles ──────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="customer"),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("profile_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("first_name", sa.String(120), nullable=False),
        sa.Column("last_name", sa.String(120), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column("addresses", sa.JSON(), nullable=False),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        *_timestamps(),
        sa.UniqueConstraint("phone_number", name="uq_customers_phone_number"),
        sa.UniqueConstraint("user_id", name="uq_customers_user_id"),
    )

    op.create_table(
        "drivers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("first_name", sa.String(120), nullable=False),
        sa.Column("last_name", sa.String(120), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column("license_number", sa.String(64), nullable=False),
        sa.Column("vehicle_details", sa.String(255), nullable=True),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("current_location", sa.JSON(), nullable=True),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        *_timestamps(),
        sa.UniqueConstraint("phone_number", name="uq_drivers_phone_number"),
        sa.UniqueConstraint("license_number", name="uq_drivers_license_number"),
        sa.UniqueConstraint("user_id", name="uq_drivers_user_id"),
    )

    # ── Stores & catalog ──────────────────────────────────────────────────
    op.create_table(
        "stores",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("street", sa.String(255), nullable=False),
        sa.Column("city", sa.String(120), nullable=False),
        sa.Column("postal_code", sa.String(20), nullable=False),
        sa.Column("coordinates", sa.JSON(), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(32), nullable=True),
        sa.Column(
            "operating_hours",
            sa.String(120),
            nullable=False,
            server_default="Mon-Sun 8:00 AM - 8:00 PM",
        ),
        sa.Column("api_base_url", sa.String(1024), nullable=True),
        sa.Column("api_key", sa.String(512), nullable=True),
        sa.Column("api_credentials", sa.JSON(), nullable=False),
        sa.Column("feed_provider", sa.String(50), nullable=False, server_default="generic"),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_stores_name"),
        sa.UniqueConstraint("contact_email", name="uq_stores_contact_email"),
        sa.UniqueConstraint("contact_phone", name="uq_stores_contact_phone"),
    )

    op.create_table(
        "catalog_products",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("brand", sa.String(120), nullable=False, server_default="Generic"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit", sa.String(50), nullable=False),
        sa.Column("category", sa.String(120), nullable=False),
        sa.Column("image_url", sa.String(1024), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("name", "brand", name="uq_catalog_products_name_brand"),
    )
    op.create_index("idx_catalog_products_category", "catalog_products", ["category"])

    op.create_table(
        "store_offerings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "store_id", sa.Uuid(), sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "product_id",
            sa.Uuid(),
            sa.ForeignKey("catalog_products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("external_product_id", sa.String(255), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("external_url", sa.String(1024), nullable=True),
        sa.Column("last_checked_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("store_id", "product_id", name="uq_store_offerings_store_product"),
        sa.CheckConstraint("price >= 0", name="ck_store_offerings_price_non_negative"),
    )
    op.create_index("idx_store_offerings_product", "store_offerings", ["product_id"])

    # ── Orders ────────────────────────────────────────────────────────────
    op.create_table(
        "orders",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("customer_id", sa.Uuid(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("driver_id", sa.Uuid(), sa.ForeignKey("drivers.id"), nullable=True),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("delivery_fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("delivery_address", sa.JSON(), nullable=False),
        sa.Column("customer_phone", sa.String(32), nullable=True),
        sa.Column("driver_phone", sa.String(32), nullable=True),
        sa.Column("payment_method", sa.String(32), nullable=False),
        sa.Column("payment_status", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("order_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("delivery_slot_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivery_slot_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
        sa.CheckConstraint("delivery_fee >= 0", name="ck_orders_fee_non_negative"),
    )
    op.create_index("idx_orders_customer_date", "orders", ["customer_id", "order_date"])
    op.create_index("idx_orders_driver_date", "orders", ["driver_id", "order_date"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "order_id", sa.Uuid(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Uuid(), sa.ForeignKey("catalog_products.id"), nullable=False),
        sa.Column("store_id", sa.Uuid(), sa.ForeignKey("stores.id"), nullable=False),
        sa.Column(
            "store_offering_id", sa.Uuid(), sa.ForeignKey("store_offerings.id"), nullable=False
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_at_order", sa.Numeric(10, 2), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        sa.CheckConstraint("price_at_order >= 0", name="ck_order_items_price_non_negative"),
    )
    op.create_index(
        "idx_order_items_order_line", "order_items", ["order_id", "line_number"], unique=True
    )


def downgrade() -> None:
    op.drop_index("idx_order_items_order_line", table_name="order_items")
    op.drop_table("order_items")
    op.drop_index("idx_orders_driver_date", table_name="orders")
    op.drop_index("idx_orders_customer_date", table_name="orders")
    op.drop_table("orders")
    op.drop_index("idx_store_offerings_product", table_name="store_offerings")
    op.drop_table("store_offerings")
    op.drop_index("idx_catalog_products_category", table_name="catalog_products")
    op.drop_table("catalog_products")
    op.drop_table("stores")
    op.drop_table("drivers")
    op.drop_table("customers")
    op.drop_table("users")
