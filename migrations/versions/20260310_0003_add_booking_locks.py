"""add products.booking_version and rentals.version_id

Revision ID: 20260310_0003
Revises: 20260301_0002
Create Date: 2026-03-10

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "20260310_0003"
down_revision = "20260301_0002"
branch_labels = None
depends_on = None


def _has_column(insp, table: str, col: str) -> bool:
    try:
        cols = insp.get_columns(table)
    except sa.exc.NoSuchTableError:
        return False
    return any(c.get("name") == col for c in cols)


def upgrade():
    bind = op.get_bind()
    insp = inspect(bind)

    if not _has_column(insp, "products", "booking_version"):
        op.add_column(
            "products",
            sa.Column("booking_version", sa.Integer(), server_default=sa.text("0"), nullable=False),
        )
    if not _has_column(insp, "rentals", "version_id"):
        op.add_column(
            "rentals",
            sa.Column("version_id", sa.Integer(), server_default=sa.text("1"), nullable=False),
        )


def downgrade():
    bind = op.get_bind()
    insp = inspect(bind)

    if _has_column(insp, "rentals", "version_id"):
        op.drop_column("rentals", "version_id")
    if _has_column(insp, "products", "booking_version"):
        op.drop_column("products", "booking_version")
