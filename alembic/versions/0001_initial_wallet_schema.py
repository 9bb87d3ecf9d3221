"""initial wallet schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0a1b2c3d4e5f"
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    "user_role": ("student", "parent", "school_admin"),
    "transaction_type": ("purchase", "deposit", "gift", "refund"),
    "transaction_status": ("pending", "completed", "failed", "cancelled"),
    "deposit_status": ("PENDING", "COMPLETED", "FAILED", "CANCELLED"),
    "payment_method_type": ("card", "bank_transfer", "cash"),
    "alert_type": ("high_spending", "limit_exceeded", "suspicious_activity", "balance_low"),
    "alert_severity": ("low", "medium", "high"),
    "gift_status": ("pending", "redeemed"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _base_columns():
    return [
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _school_fk():
    return sa.ForeignKeyConstraint(["school_id"], ["schools.id"], ondelete="CASCADE")


def _user_fk(column: str):
    return sa.ForeignKeyConstraint([column], ["users.id"], ondelete="CASCADE")


def _index(table: str, *columns: str, unique: bool = False) -> None:
    for column in columns:
        op.create_index(op.f(f"ix_{table}_{column}"), table, [column], unique=unique)


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "schools",
        *_base_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    _index("schools", "id", "created_at", "is_active")

    op.create_table(
        "operating_units",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _school_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    _index("operating_units", "id", "created_at", "school_id", "is_active")

    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False),
        sa.Column("student_number", sa.String(20), nullable=True),
        sa.Column("role", _enum("user_role"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _school_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    _index("users", "id", "created_at", "school_id", "role", "is_active")
    _index("users", "email", unique=True)

    op.create_table(
        "parent_student_links",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("parent_user_id", sa.UUID(), nullable=False),
        sa.Column("student_id", sa.UUID(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _school_fk(),
        _user_fk("parent_user_id"),
        _user_fk("student_id"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("parent_user_id", "student_id", "school_id", name="uq_parent_student_school"),
    )
    _index("parent_student_links", "id", "created_at", "school_id", "parent_user_id", "student_id", "is_active")

    op.create_table(
        "wallet_profiles",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("student_id", sa.UUID(), nullable=False),
        sa.Column("balance", sa.Numeric(10, 2), nullable=False),
        sa.Column("favorites_public", sa.Boolean(), nullable=False),
        _school_fk(),
        _user_fk("student_id"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("balance >= 0", name="ck_wallet_balance_non_negative"),
    )
    _index("wallet_profiles", "id", "created_at", "school_id")
    _index("wallet_profiles", "student_id", unique=True)

    op.create_table(
        "products",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        _school_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("price > 0", name="ck_product_price_positive"),
    )
    _index("products", "id", "created_at", "school_id", "is_available")

    op.create_table(
        "favorites",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("student_id", sa.UUID(), nullable=False),
        sa.Column("product_id", sa.UUID(), nullable=False),
        _school_fk(),
        _user_fk("student_id"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("student_id", "product_id", name="uq_favorite_student_product"),
    )
    _index("favorites", "id", "created_at", "school_id", "student_id")

    op.create_table(
        "transactions",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("student_id", sa.UUID(), nullable=False),
        sa.Column("type", _enum("transaction_type"), nullable=False),
        sa.Column("status", _enum("transaction_status"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("product_id", sa.UUID(), nullable=True),
        sa.Column("operating_unit_id", sa.UUID(), nullable=True),
        sa.Column("description", sa.String(255), nullable=True),
        _school_fk(),
        _user_fk("student_id"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["operating_unit_id"], ["operating_units.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    _index(
        "transactions",
        "id", "created_at", "school_id", "student_id", "type", "status", "product_id", "operating_unit_id",
    )

    op.create_table(
        "spending_limits",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("student_id", sa.UUID(), nullable=False),
        sa.Column("daily_limit", sa.Numeric(10, 2), nullable=False),
        sa.Column("monthly_limit", sa.Numeric(10, 2), nullable=False),
        _school_fk(),
        _user_fk("student_id"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("student_id", "school_id", name="uq_spending_limit_student_school"),
        sa.CheckConstraint("daily_limit > 0", name="ck_daily_limit_positive"),
        sa.CheckConstraint("monthly_limit > 0", name="ck_monthly_limit_positive"),
    )
    _index("spending_limits", "id", "created_at", "school_id", "student_id")

    op.create_table(
        "payment_methods",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("parent_user_id", sa.UUID(), nullable=False),
        sa.Column("method_type", _enum("payment_method_type"), nullable=False),
        sa.Column("label", sa.String(100), nullable=False),
        sa.Column("last_four", sa.String(4), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _school_fk(),
        _user_fk("parent_user_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    _index("payment_methods", "id", "created_at", "school_id", "parent_user_id", "is_active")

    op.create_table(
        "deposits",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("parent_user_id", sa.UUID(), nullable=False),
        sa.Column("student_id", sa.UUID(), nullable=False),
        sa.Column("payment_method_id", sa.UUID(), nullable=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", _enum("deposit_status"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("failure_reason", sa.String(255), nullable=True),
        sa.Column("deposited_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        _school_fk(),
        _user_fk("parent_user_id"),
        _user_fk("student_id"),
        sa.ForeignKeyConstraint(["payment_method_id"], ["payment_methods.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount > 0", name="ck_deposit_amount_positive"),
    )
    _index("deposits", "id", "created_at", "school_id", "parent_user_id", "student_id", "status")

    op.create_table(
        "alerts",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("parent_user_id", sa.UUID(), nullable=False),
        sa.Column("student_id", sa.UUID(), nullable=False),
        sa.Column("type", _enum("alert_type"), nullable=False),
        sa.Column("severity", _enum("alert_severity"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        _school_fk(),
        _user_fk("parent_user_id"),
        _user_fk("student_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    _index("alerts", "id", "created_at", "school_id", "parent_user_id", "student_id", "is_read")

    op.create_table(
        "alert_configs",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("student_id", sa.UUID(), nullable=False),
        sa.Column("daily_alert_threshold", sa.Numeric(10, 2), nullable=False),
        sa.Column("monthly_alert_threshold", sa.Numeric(10, 2), nullable=False),
        sa.Column("low_balance_threshold", sa.Numeric(10, 2), nullable=False),
        sa.Column("suspicious_activity_threshold", sa.Integer(), nullable=False),
        sa.Column("notify_parent", sa.Boolean(), nullable=False),
        _school_fk(),
        _user_fk("student_id"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("student_id", "school_id", name="uq_alert_config_student_school"),
    )
    _index("alert_configs", "id", "created_at", "school_id", "student_id")

    op.create_table(
        "gifts",
        *_base_columns(),
        sa.Column("school_id", sa.UUID(), nullable=False),
        sa.Column("sender_id", sa.UUID(), nullable=False),
        sa.Column("receiver_id", sa.UUID(), nullable=False),
        sa.Column("product_id", sa.UUID(), nullable=True),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("item_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("redemption_code", sa.String(16), nullable=False),
        sa.Column("status", _enum("gift_status"), nullable=False),
        sa.Column("redeemed_at", sa.DateTime(), nullable=True),
        sa.Column("redeemed_unit_id", sa.UUID(), nullable=True),
        _school_fk(),
        _user_fk("sender_id"),
        _user_fk("receiver_id"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["redeemed_unit_id"], ["operating_units.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    _index("gifts", "id", "created_at", "school_id", "sender_id", "receiver_id", "status")
    _index("gifts", "redemption_code", unique=True)

    op.create_table(
        "thank_you_notes",
        *_base_columns(),
        sa.Column("gift_id", sa.UUID(), nullable=False),
        sa.Column("sender_id", sa.UUID(), nullable=False),
        sa.Column("receiver_id", sa.UUID(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["gift_id"], ["gifts.id"], ondelete="CASCADE"),
        _user_fk("sender_id"),
        _user_fk("receiver_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    _index("thank_you_notes", "id", "created_at", "gift_id", "sender_id", "receiver_id")


def downgrade() -> None:
    # Dropping a table drops its indexes with it
    for table in (
        "thank_you_notes", "gifts", "alert_configs", "alerts", "deposits",
        "payment_methods", "spending_limits", "transactions", "favorites",
        "products", "wallet_profiles", "parent_student_links", "users",
        "operating_units", "schools",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
