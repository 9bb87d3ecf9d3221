from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime
from uuid import UUID

from app.models.enums import GiftStatus
from app.schemas.responses import Money


class GiftCreate(BaseModel):
    receiver_id: UUID
    product_id: UUID
    message: Optional[str] = Field(None, max_length=500)


class GiftRedeem(BaseModel):
    code: str = Field(..., min_length=4, max_length=16)
    operating_unit_id: UUID

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        """Codes are stored uppercase; accept any case at the counter"""
        return v.strip().upper()


class GiftResponse(BaseModel):
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    product_id: Optional[UUID] = None
    item_name: str
    item_price: Money
    message: Optional[str] = None
    redemption_code: str
    status: GiftStatus
    redeemed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ThankYouCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=1000)


class ThankYouResponse(BaseModel):
    id: UUID
    gift_id: UUID
    sender_id: UUID
    receiver_id: UUID
    body: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
