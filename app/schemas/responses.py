"""Standardized API Response Schemas"""

from decimal import Decimal
from typing import Annotated, Generic, TypeVar
from pydantic import BaseModel, PlainSerializer


T = TypeVar('T')

# Money travels as a JSON number with two decimals, single currency
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


class SuccessResponse(BaseModel, Generic[T]):
    """
    Standard success response envelope.

    Example:
        {
            "success": true,
            "data": {...},
            "message": "Operation successful"
        }
    """
    success: bool = True
    data: T
    message: str = "Operation successful"


class ErrorDetail(BaseModel):
    """Error details structure"""
    code: str
    message: str


class ErrorResponse(BaseModel):
    """
    Standard error response envelope.

    Example:
        {
            "success": false,
            "error": {
                "code": "INSUFFICIENT_FUNDS",
                "message": "Balance is lower than 25.00"
            }
        }
    """
    success: bool = False
    error: ErrorDetail
