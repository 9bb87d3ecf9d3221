"""Spending limits set by parents"""

from sqlalchemy import Column, Numeric, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB

from app.models.base import BaseModel, SchoolScopedMixin


class SpendingLimit(BaseModel, SchoolScopedMixin):
    """
    Spending caps and item restrictions for a student.
    Created lazily with the configured defaults on first access.
    A null weekly_limit means there is no weekly cap.
    """
    __tablename__ = "spending_limits"
    __table_args__ = (
        UniqueConstraint("student_id", "school_id", name="uq_spending_limit_student_school"),
        CheckConstraint("daily_limit > 0", name="ck_daily_limit_positive"),
        CheckConstraint("weekly_limit IS NULL OR weekly_limit > 0", name="ck_weekly_limit_positive"),
        CheckConstraint("monthly_limit > 0", name="ck_monthly_limit_positive"),
    )

    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    daily_limit = Column(Numeric(10, 2), nullable=False)
    weekly_limit = Column(Numeric(10, 2), nullable=True)
    monthly_limit = Column(Numeric(10, 2), nullable=False)

    # Lowercased category names and product ids (as strings) the student may not buy
    restricted_categories = Column(JSONB, nullable=False, default=list, server_default="[]")
    restricted_products = Column(JSONB, nullable=False, default=list, server_default="[]")

    def __repr__(self) -> str:
        return f"<SpendingLimit {self.student_id} daily={self.daily_limit} monthly={self.monthly_limit}>"
