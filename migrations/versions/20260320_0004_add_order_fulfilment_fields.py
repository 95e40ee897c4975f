"""add order fulfilment timestamps and tracking number

Revision ID: 20260320_0004
Revises: 20260310_0003
Create Date: 2026-03-20

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "20260320_0004"
down_revision = "20260310_0003"
branch_labels = None
depends_on = None


NEW_COLUMNS = (
    ("confirmed_at", sa.DateTime()),
    ("shipped_at", sa.DateTime()),
    ("delivered_at", sa.DateTime()),
    ("tracking_number", sa.String(length=100)),
)


def _has_column(insp, table: str, col: str) -> bool:
    try:
        cols = insp.get_columns(table)
    except sa.exc.NoSuchTableError:
        return False
    return any(c.get("name") == col for c in cols)


def upgrade():
    bind = op.get_bind()
    insp = inspect(bind)

    for name, type_ in NEW_COLUMNS:
        if not _has_column(insp, "orders", name):
            op.add_column("orders", sa.Column(name, type_, nullable=True))


def downgrade():
    bind = op.get_bind()
    insp = inspect(bind)

    for name, _ in reversed(NEW_COLUMNS):
        if _has_column(insp, "orders", name):
            op.drop_column("orders", name)
