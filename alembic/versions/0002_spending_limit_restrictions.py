"""add weekly limit and item restrictions to spending_limits

Revision ID: 1b2c3d4e5f6a
Revises: 0a1b2c3d4e5f
Create Date: 2026-10-20

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "1b2c3d4e5f6a"
down_revision = "0a1b2c3d4e5f"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("spending_limits", sa.Column("weekly_limit", sa.Numeric(10, 2), nullable=True))
    op.add_column(
        "spending_limits",
        sa.Column("restricted_categories", postgresql.JSONB(), nullable=False, server_default="[]"),
    )
    op.add_column(
        "spending_limits",
        sa.Column("restricted_products", postgresql.JSONB(), nullable=False, server_default="[]"),
    )
    op.create_check_constraint(
        "ck_weekly_limit_positive",
        "spending_limits",
        "weekly_limit IS NULL OR weekly_limit > 0",
    )


def downgrade() -> None:
    op.drop_constraint("ck_weekly_limit_positive", "spending_limits", type_="check")
    op.drop_column("spending_limits", "restricted_products")
    op.drop_column("spending_limits", "restricted_categories")
    op.drop_column("spending_limits", "weekly_limit")
