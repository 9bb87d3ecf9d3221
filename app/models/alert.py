"""Parent alerts and alert thresholds"""

from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB

from app.models.base import BaseModel, SchoolScopedMixin, pg_enum
from app.models.enums import AlertType, AlertSeverity


class Alert(BaseModel, SchoolScopedMixin):
    """
    Notification for a parent about one of their children.
    Append-only; is_read only ever flips from False to True.
    """
    __tablename__ = "alerts"

    parent_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(pg_enum(AlertType, "alert_type"), nullable=False)
    severity = Column(pg_enum(AlertSeverity, "alert_severity"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    details = Column("metadata", JSONB, nullable=False, default=dict)

    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<Alert {self.type} ({self.severity}) {'read' if self.is_read else 'unread'}>"


class AlertConfig(BaseModel, SchoolScopedMixin):
    """Per-student thresholds that trigger parent alerts"""
    __tablename__ = "alert_configs"
    __table_args__ = (
        UniqueConstraint("student_id", "school_id", name="uq_alert_config_student_school"),
    )

    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    daily_alert_threshold = Column(Numeric(10, 2), nullable=False)
    monthly_alert_threshold = Column(Numeric(10, 2), nullable=False)
    low_balance_threshold = Column(Numeric(10, 2), nullable=False)
    suspicious_activity_threshold = Column(Integer, nullable=False)
    notify_parent = Column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<AlertConfig {self.student_id}>"
