from typing import Any, List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.config import WalletPolicy
from app.models.user import User
from app.schemas.deposit import (
    DepositCreate,
    DepositFail,
    DepositRequest,
    DepositResponse,
    ValidationResult,
)
from app.schemas.responses import SuccessResponse
from app.services.deposit_service import DepositService

router = APIRouter()


def _to_request(deposit_in: DepositCreate, current_user: User) -> DepositRequest:
    return DepositRequest(
        parent_user_id=current_user.id,
        student_id=deposit_in.student_id,
        school_id=current_user.school_id,
        amount=deposit_in.amount,
        payment_method_id=deposit_in.payment_method_id,
        notes=deposit_in.notes,
    )


@router.post("/validate", response_model=SuccessResponse[ValidationResult])
async def validate_deposit(
    deposit_in: DepositCreate,
    current_user: User = Depends(deps.require_parent),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    """
    Dry run: report whether a deposit would be accepted.
    """
    result = await DepositService.validate_deposit(db, _to_request(deposit_in, current_user), policy)
    return SuccessResponse(data=result, message="Deposit is valid" if result.valid else result.reason)


@router.post("", response_model=SuccessResponse[DepositResponse], status_code=status.HTTP_201_CREATED)
async def create_deposit(
    deposit_in: DepositCreate,
    current_user: User = Depends(deps.require_parent),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    """
    Create a pending deposit. The balance changes only when the deposit
    is completed.
    """
    deposit, validation = await DepositService.create_deposit(
        db, _to_request(deposit_in, current_user), policy
    )
    if deposit is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=validation.reason)
    return SuccessResponse(data=DepositResponse.model_validate(deposit), message="Deposit created")


@router.get("", response_model=SuccessResponse[List[DepositResponse]])
async def list_deposits(
    current_user: User = Depends(deps.require_parent),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    deposits = await DepositService.get_parent_deposit_history(db, current_user.id, current_user.school_id)
    return SuccessResponse(data=[DepositResponse.model_validate(d) for d in deposits])


@router.post("/{deposit_id}/complete", response_model=SuccessResponse[DepositResponse])
async def complete_deposit(
    deposit_id: UUID,
    current_user: User = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Confirm that funds arrived and credit the student's wallet.
    """
    deposit = await DepositService.complete_deposit(db, deposit_id, current_user.school_id)
    return SuccessResponse(data=DepositResponse.model_validate(deposit), message="Deposit completed")


@router.post("/{deposit_id}/fail", response_model=SuccessResponse[DepositResponse])
async def fail_deposit(
    deposit_id: UUID,
    fail_in: DepositFail,
    current_user: User = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    deposit = await DepositService.fail_deposit(db, deposit_id, current_user.school_id, fail_in.reason)
    return SuccessResponse(data=DepositResponse.model_validate(deposit), message="Deposit marked as failed")


@router.post("/{deposit_id}/cancel", response_model=SuccessResponse[DepositResponse])
async def cancel_deposit(
    deposit_id: UUID,
    current_user: User = Depends(deps.require_parent),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    deposit = await DepositService.cancel_deposit(db, deposit_id, current_user.school_id, current_user.id)
    return SuccessResponse(data=DepositResponse.model_validate(deposit), message="Deposit cancelled")
