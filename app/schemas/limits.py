from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from app.schemas.responses import Money


class PolicyDecision(BaseModel):
    """Outcome of a purchase eligibility check"""
    allowed: bool
    reason: Optional[str] = None


class SpendingStatus(BaseModel):
    """
    Derived view of a student's spend against their limits.
    Percentages are clamped to [0, 100]; spent amounts are not.
    Weekly fields are null when the student has no weekly cap.
    """
    student_id: UUID
    daily_spent: Money
    daily_limit: Money
    daily_percentage: float = Field(..., ge=0, le=100)
    weekly_spent: Money = Decimal("0.00")
    weekly_limit: Optional[Money] = None
    weekly_percentage: Optional[float] = Field(None, ge=0, le=100)
    monthly_spent: Money
    monthly_limit: Money
    monthly_percentage: float = Field(..., ge=0, le=100)
    remaining_daily: Money
    remaining_weekly: Optional[Money] = None
    remaining_monthly: Money
    can_purchase: bool


class SpendingLimitUpdate(BaseModel):
    """
    Partial update of a student's limits. Only fields that are sent change;
    `weekly_limit: null` removes the weekly cap.
    """
    daily_limit: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    weekly_limit: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    monthly_limit: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    restricted_categories: Optional[List[str]] = None
    restricted_products: Optional[List[UUID]] = None

    @field_validator("restricted_categories")
    @classmethod
    def clean_categories(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        return sorted({c.strip().lower() for c in v if c and c.strip()})

    @model_validator(mode="after")
    def check_not_empty(self) -> "SpendingLimitUpdate":
        if not self.model_fields_set:
            raise ValueError("Provide at least one limit setting")
        for name in ("daily_limit", "monthly_limit"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be removed")
        return self


class SpendingLimitResponse(BaseModel):
    id: UUID
    student_id: UUID
    school_id: UUID
    daily_limit: Money
    weekly_limit: Optional[Money] = None
    monthly_limit: Money
    restricted_categories: List[str] = Field(default_factory=list)
    restricted_products: List[UUID] = Field(default_factory=list)
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("restricted_categories", "restricted_products", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v or []


class PurchaseCheckRequest(BaseModel):
    """Amount is read exactly; sub-cent values are refused with a reason"""
    student_id: UUID
    amount: Decimal
    product_id: Optional[UUID] = None


class PurchaseCheckResponse(BaseModel):
    student_id: UUID
    amount: Money
    allowed: bool


class OverLimitStudent(BaseModel):
    student_id: UUID
    status: SpendingStatus
