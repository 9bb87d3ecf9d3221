from typing import Optional
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from uuid import UUID

from app.models.enums import TransactionStatus, TransactionType
from app.schemas.responses import Money


class BalanceResponse(BaseModel):
    student_id: UUID
    balance: Money
    favorites_public: bool = False


class ProductResponse(BaseModel):
    id: UUID
    name: str
    category: Optional[str] = None
    price: Money
    is_available: bool

    model_config = ConfigDict(from_attributes=True)


class FavoriteToggleResponse(BaseModel):
    product_id: UUID
    is_favorite: bool


class PurchaseCreate(BaseModel):
    """Sale recorded at a point of sale"""
    student_id: UUID
    product_id: UUID
    operating_unit_id: Optional[UUID] = None


class TransactionResponse(BaseModel):
    id: UUID
    student_id: UUID
    type: TransactionType
    status: TransactionStatus
    amount: Money
    product_id: Optional[UUID] = None
    operating_unit_id: Optional[UUID] = None
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
