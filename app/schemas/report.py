from typing import Dict, List
from pydantic import BaseModel, Field
from decimal import Decimal
from uuid import UUID

from app.schemas.responses import Money


class Bucket(BaseModel):
    count: int = 0
    amount: Money = Decimal("0.00")


class TransactionReport(BaseModel):
    """Totals over a set of ledger entries; empty sets give zeroes"""
    period: str
    total_transactions: int = 0
    total_amount: Money = Decimal("0.00")
    by_type: Dict[str, Bucket] = Field(default_factory=dict)
    by_status: Dict[str, Bucket] = Field(default_factory=dict)
    average_transaction: Money = Decimal("0.00")


class TopProduct(BaseModel):
    product_id: UUID
    name: str
    quantity: int
    revenue: Money


class TopOperatingUnit(BaseModel):
    operating_unit_id: UUID
    name: str
    revenue: Money


class SchoolReport(BaseModel):
    school_id: UUID
    student_count: int = 0
    total_transactions: int = 0
    total_revenue: Money = Decimal("0.00")
    average_spend_per_student: Money = Decimal("0.00")
    top_products: List[TopProduct] = Field(default_factory=list)
    top_operating_units: List[TopOperatingUnit] = Field(default_factory=list)
    period: str


class ParentReport(BaseModel):
    parent_user_id: UUID
    student_count: int = 0
    total_deposited: Money = Decimal("0.00")
    total_spent: Money = Decimal("0.00")
    total_balance: Money = Decimal("0.00")
    period: str
