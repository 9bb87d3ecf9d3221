from typing import Optional
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from app.models.enums import DepositStatus, PaymentMethodType
from app.schemas.responses import Money


class ValidationResult(BaseModel):
    """Structured validation outcome; invalid results carry a reason"""
    valid: bool
    reason: Optional[str] = None


class DepositRequest(BaseModel):
    """
    Parent-initiated transfer into a student's wallet.
    Amount bounds are checked by the deposit validator, not here, so that
    out-of-range amounts produce a validation reason instead of a 422.
    """
    parent_user_id: UUID
    student_id: UUID
    school_id: UUID
    amount: Decimal
    payment_method_id: Optional[UUID] = None
    notes: Optional[str] = Field(None, max_length=1000)


class DepositCreate(BaseModel):
    """Body of POST /deposits; parent and school come from the token"""
    student_id: UUID
    amount: Decimal
    payment_method_id: Optional[UUID] = None
    notes: Optional[str] = Field(None, max_length=1000)


class DepositFail(BaseModel):
    reason: str = Field(..., min_length=1, max_length=255)


class DepositResponse(BaseModel):
    id: UUID
    parent_user_id: UUID
    student_id: UUID
    school_id: UUID
    amount: Money
    status: DepositStatus
    payment_method_id: Optional[UUID] = None
    notes: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    deposited_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentMethodCreate(BaseModel):
    method_type: PaymentMethodType
    label: str = Field(..., min_length=1, max_length=100)
    last_four: Optional[str] = Field(None, pattern=r"^\d{4}$")
    is_default: bool = False


class PaymentMethodResponse(BaseModel):
    id: UUID
    method_type: PaymentMethodType
    label: str
    last_four: Optional[str] = None
    is_default: bool
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
