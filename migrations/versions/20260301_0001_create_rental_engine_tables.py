"""create catalog read tables, orders and rentals

Revision ID: 20260301_0001
Revises:
Create Date: 2026-03-01

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None


RENTAL_STATUSES = (
    "booked",
    "confirmed",
    "out_for_delivery",
    "active",
    "return_requested",
    "pickup_scheduled",
    "returned",
    "inspecting",
    "completed",
    "overdue",
    "cancelled",
)
DEPOSIT_STATUSES = ("held", "refunded", "partially_refunded", "forfeited")
DELIVERY_TYPES = ("standard", "express", "pickup")


def upgrade():
    bind = op.get_bind()
    insp = inspect(bind)
    tables = set(insp.get_table_names())

    if "products" not in tables:
        op.create_table(
            "products",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("sku", sa.String(length=100), nullable=False, unique=True),
            sa.Column("is_sale", sa.Boolean(), server_default=sa.text("1"), nullable=False),
            sa.Column("is_rental", sa.Boolean(), server_default=sa.text("0"), nullable=False),
            sa.Column("is_active", sa.Boolean(), server_default=sa.text("1"), nullable=False),
            sa.Column("is_deleted", sa.Boolean(), server_default=sa.text("0"), nullable=False),
            sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        )

    if "product_variants" not in tables:
        op.create_table(
            "product_variants",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("sku_variant", sa.String(length=100), nullable=True, unique=True),
            sa.Column("size", sa.String(length=20), nullable=True),
            sa.Column("color", sa.String(length=50), nullable=True),
            sa.Column("is_active", sa.Boolean(), server_default=sa.text("1"), nullable=False),
            sa.Column("stock_quantity", sa.Integer(), server_default=sa.text("0"), nullable=False),
            sa.Column("stock_allocated", sa.Integer(), server_default=sa.text("0"), nullable=False),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
            sa.CheckConstraint("stock_quantity >= 0", name="ck_variant_stock_quantity_non_negative"),
            sa.CheckConstraint("stock_allocated >= 0", name="ck_variant_stock_allocated_non_negative"),
            sa.CheckConstraint("stock_allocated <= stock_quantity", name="ck_variant_allocated_within_quantity"),
        )
        op.create_index("ix_product_variants_product_id", "product_variants", ["product_id"], unique=False)

    if "product_prices" not in tables:
        op.create_table(
            "product_prices",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("mrp", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            sa.Column("sale_price", sa.Numeric(10, 2), nullable=True),
            sa.Column("rental_price_per_day", sa.Numeric(10, 2), nullable=True),
            sa.Column("rental_price_3days", sa.Numeric(10, 2), nullable=True),
            sa.Column("rental_price_7days", sa.Numeric(10, 2), nullable=True),
            sa.Column("security_deposit", sa.Numeric(10, 2), nullable=True),
            sa.Column("late_fee_per_day", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            sa.Column("effective_from", sa.Date(), nullable=True),
            sa.Column("effective_to", sa.Date(), nullable=True),
            sa.Column("is_current", sa.Boolean(), server_default=sa.text("1"), nullable=False),
            sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        )
        op.create_index("ix_product_prices_product_id", "product_prices", ["product_id"], unique=False)
        op.create_index("ix_product_prices_is_current", "product_prices", ["is_current"], unique=False)

    if "cart_items" not in tables:
        op.create_table(
            "cart_items",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("variant_id", sa.Integer(), nullable=True),
            sa.Column("quantity", sa.Integer(), server_default=sa.text("1"), nullable=False),
            sa.Column("added_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["variant_id"], ["product_variants.id"], ondelete="CASCADE"),
        )
        op.create_index("ix_cart_items_user_id", "cart_items", ["user_id"], unique=False)

    if "orders" not in tables:
        address_columns = []
        for prefix in ("shipping", "billing"):
            address_columns += [
                sa.Column(f"{prefix}_name", sa.String(length=150), nullable=True),
                sa.Column(f"{prefix}_email", sa.String(length=255), nullable=True),
                sa.Column(f"{prefix}_phone", sa.String(length=20), nullable=True),
                sa.Column(f"{prefix}_address_line1", sa.String(length=255), nullable=True),
                sa.Column(f"{prefix}_address_line2", sa.String(length=255), nullable=True),
                sa.Column(f"{prefix}_city", sa.String(length=100), nullable=True),
                sa.Column(f"{prefix}_state", sa.String(length=100), nullable=True),
                sa.Column(f"{prefix}_postal_code", sa.String(length=20), nullable=True),
                sa.Column(f"{prefix}_country", sa.String(length=100), nullable=True),
            ]
        op.create_table(
            "orders",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("order_number", sa.String(length=50), nullable=False, unique=True),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("order_type", sa.String(length=10), server_default="sale", nullable=False),
            sa.Column("status", sa.String(length=20), server_default="pending", nullable=False),
            sa.Column("payment_status", sa.String(length=20), server_default="pending", nullable=False),
            sa.Column("payment_method", sa.String(length=50), nullable=True),
            sa.Column("subtotal", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            sa.Column("tax_amount", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            sa.Column("shipping_amount", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            sa.Column("discount_amount", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            sa.Column("total_amount", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            *address_columns,
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("ordered_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
            sa.Column("cancelled_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_orders_user_id", "orders", ["user_id"], unique=False)

    if "order_items" not in tables:
        op.create_table(
            "order_items",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("order_id", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("variant_id", sa.Integer(), nullable=True),
            sa.Column("product_name", sa.String(length=255), nullable=False),
            sa.Column("product_sku", sa.String(length=100), nullable=False),
            sa.Column("variant_sku", sa.String(length=100), nullable=True),
            sa.Column("size", sa.String(length=20), nullable=True),
            sa.Column("color", sa.String(length=50), nullable=True),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
            sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
            sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["variant_id"], ["product_variants.id"], ondelete="RESTRICT"),
        )
        op.create_index("ix_order_items_order_id", "order_items", ["order_id"], unique=False)

    if "rentals" not in tables:
        op.create_table(
            "rentals",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("order_id", sa.Integer(), nullable=False, unique=True),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("variant_id", sa.Integer(), nullable=True),
            sa.Column("rental_start_date", sa.Date(), nullable=False),
            sa.Column("rental_end_date", sa.Date(), nullable=False),
            sa.Column("actual_return_date", sa.Date(), nullable=True),
            sa.Column("rental_days", sa.Integer(), nullable=False),
            sa.Column("daily_rate", sa.Numeric(10, 2), nullable=False),
            sa.Column("total_rental_amount", sa.Numeric(10, 2), nullable=False),
            sa.Column("security_deposit", sa.Numeric(10, 2), nullable=False),
            sa.Column("late_fee", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            sa.Column("damage_charges", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            sa.Column("refund_amount", sa.Numeric(10, 2), server_default=sa.text("0"), nullable=False),
            sa.Column(
                "rental_status",
                sa.Enum(*RENTAL_STATUSES, name="rental_status", native_enum=False, length=30),
                server_default="booked",
                nullable=False,
            ),
            sa.Column(
                "deposit_status",
                sa.Enum(*DEPOSIT_STATUSES, name="deposit_status", native_enum=False, length=30),
                server_default="held",
                nullable=False,
            ),
            sa.Column(
                "delivery_type",
                sa.Enum(*DELIVERY_TYPES, name="delivery_type", native_enum=False, length=20),
                server_default="standard",
                nullable=False,
            ),
            sa.Column("is_extended", sa.Boolean(), server_default=sa.text("0"), nullable=False),
            sa.Column("extension_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
            sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="RESTRICT"),
            sa.ForeignKeyConstraint(["variant_id"], ["product_variants.id"], ondelete="RESTRICT"),
            sa.CheckConstraint("rental_end_date > rental_start_date", name="ck_rental_dates_ordered"),
        )
        op.create_index("ix_rentals_user_id", "rentals", ["user_id"], unique=False)
        op.create_index("ix_rentals_rental_status", "rentals", ["rental_status"], unique=False)
        op.create_index(
            "ix_rentals_product_variant_dates",
            "rentals",
            ["product_id", "variant_id", "rental_start_date", "rental_end_date"],
            unique=False,
        )


def downgrade():
    bind = op.get_bind()
    insp = inspect(bind)
    tables = set(insp.get_table_names())

    for table in ("rentals", "order_items", "orders", "cart_items", "product_prices", "product_variants", "products"):
        if table in tables:
            op.drop_table(table)
