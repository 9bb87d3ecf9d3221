"""Parent deposits and payment methods"""

from sqlalchemy import Column, String, Text, DateTime, Boolean, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, SchoolScopedMixin, StatusMixin, pg_enum
from app.models.enums import DepositStatus, PaymentMethodType


class PaymentMethod(BaseModel, SchoolScopedMixin, StatusMixin):
    """
    Funding source owned by a parent.
    At most one active method per parent is flagged as default.
    """
    __tablename__ = "payment_methods"

    parent_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    method_type = Column(pg_enum(PaymentMethodType, "payment_method_type"), nullable=False)
    label = Column(String(100), nullable=False)
    last_four = Column(String(4), nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<PaymentMethod {self.label} default={self.is_default}>"


class Deposit(BaseModel, SchoolScopedMixin):
    """
    Parent-to-student fund transfer.
    Lifecycle: PENDING -> COMPLETED | FAILED | CANCELLED.
    """
    __tablename__ = "deposits"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_deposit_amount_positive"),
    )

    parent_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_method_id = Column(UUID(as_uuid=True), ForeignKey("payment_methods.id", ondelete="SET NULL"), nullable=True)

    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(pg_enum(DepositStatus, "deposit_status"), default=DepositStatus.PENDING, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    failure_reason = Column(String(255), nullable=True)

    deposited_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    payment_method = relationship("PaymentMethod")

    def __repr__(self) -> str:
        return f"<Deposit {self.amount} - {self.status}>"
