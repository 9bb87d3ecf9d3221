"""Wallet balances, catalog, favorites and the transaction ledger"""

from sqlalchemy import Column, String, Boolean, Numeric, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, SchoolScopedMixin, pg_enum
from app.models.enums import TransactionType, TransactionStatus


class WalletProfile(BaseModel, SchoolScopedMixin):
    """
    A student's campus card balance.
    One per student; balance never goes negative.
    """
    __tablename__ = "wallet_profiles"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_wallet_balance_non_negative"),
    )

    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    balance = Column(Numeric(10, 2), nullable=False, default=0)
    favorites_public = Column(Boolean, default=False, nullable=False)

    student = relationship("User", back_populates="wallet")

    def __repr__(self) -> str:
        return f"<WalletProfile {self.student_id}: {self.balance}>"


class Product(BaseModel, SchoolScopedMixin):
    """Catalog item sold at a school's operating units"""
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_product_price_positive"),
    )

    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    is_available = Column(Boolean, default=True, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Product {self.name} {self.price}>"


class Favorite(BaseModel, SchoolScopedMixin):
    """Product a student marked as favorite"""
    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("student_id", "product_id", name="uq_favorite_student_product"),
    )

    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    product = relationship("Product")


class Transaction(BaseModel, SchoolScopedMixin):
    """
    Ledger entry against a student's wallet.
    Spending windows and reports are computed from these rows.
    """
    __tablename__ = "transactions"

    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(pg_enum(TransactionType, "transaction_type"), nullable=False, index=True)
    status = Column(pg_enum(TransactionStatus, "transaction_status"), nullable=False, default=TransactionStatus.COMPLETED, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    operating_unit_id = Column(UUID(as_uuid=True), ForeignKey("operating_units.id", ondelete="SET NULL"), nullable=True, index=True)
    description = Column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Transaction {self.type} {self.amount} ({self.status})>"
