from typing import Any, List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.models.user import User
from app.schemas.deposit import PaymentMethodCreate, PaymentMethodResponse
from app.schemas.responses import SuccessResponse
from app.services.payment_method_service import PaymentMethodService

router = APIRouter()


@router.get("", response_model=SuccessResponse[List[PaymentMethodResponse]])
async def list_payment_methods(
    current_user: User = Depends(deps.require_parent),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    methods = await PaymentMethodService.list_payment_methods(db, current_user.id)
    return SuccessResponse(data=[PaymentMethodResponse.model_validate(m) for m in methods])


@router.post("", response_model=SuccessResponse[PaymentMethodResponse], status_code=status.HTTP_201_CREATED)
async def add_payment_method(
    method_in: PaymentMethodCreate,
    current_user: User = Depends(deps.require_parent),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    method = await PaymentMethodService.add_payment_method(
        db, current_user.id, current_user.school_id, method_in
    )
    return SuccessResponse(data=PaymentMethodResponse.model_validate(method), message="Payment method added")


@router.put("/{method_id}/default", response_model=SuccessResponse[PaymentMethodResponse])
async def set_default_payment_method(
    method_id: UUID,
    current_user: User = Depends(deps.require_parent),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    method = await PaymentMethodService.set_default(db, method_id, current_user.id)
    if not method:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment method not found")
    return SuccessResponse(data=PaymentMethodResponse.model_validate(method), message="Default payment method updated")


@router.delete("/{method_id}", response_model=SuccessResponse[dict])
async def delete_payment_method(
    method_id: UUID,
    current_user: User = Depends(deps.require_parent),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Deactivate a payment method. Past deposits keep their reference.
    """
    removed = await PaymentMethodService.deactivate(db, method_id, current_user.id)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment method not found")
    return SuccessResponse(data={"id": str(method_id)}, message="Payment method removed")
