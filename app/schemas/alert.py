from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from app.models.enums import AlertType, AlertSeverity
from app.schemas.responses import Money


class AlertCreate(BaseModel):
    parent_user_id: UUID
    student_id: UUID
    school_id: UUID
    type: AlertType
    severity: AlertSeverity
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    details: Dict[str, Any] = Field(default_factory=dict)


class AlertResponse(BaseModel):
    id: UUID
    parent_user_id: UUID
    student_id: UUID
    school_id: UUID
    type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AlertConfigUpdate(BaseModel):
    daily_alert_threshold: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    monthly_alert_threshold: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    low_balance_threshold: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    suspicious_activity_threshold: Optional[int] = Field(None, ge=1)
    notify_parent: Optional[bool] = None


class AlertConfigResponse(BaseModel):
    id: UUID
    student_id: UUID
    school_id: UUID
    daily_alert_threshold: Money
    monthly_alert_threshold: Money
    low_balance_threshold: Money
    suspicious_activity_threshold: int
    notify_parent: bool

    model_config = ConfigDict(from_attributes=True)
