from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.config import WalletPolicy
from app.core.exceptions import NotFoundError
from app.models.user import User
from app.schemas.limits import (
    OverLimitStudent,
    PurchaseCheckRequest,
    PurchaseCheckResponse,
    SpendingLimitResponse,
    SpendingLimitUpdate,
    SpendingStatus,
)
from app.schemas.responses import SuccessResponse
from app.services.spending_limit_service import SpendingLimitService
from app.services.wallet_service import WalletService

router = APIRouter()


@router.get("/me/status", response_model=SuccessResponse[SpendingStatus])
async def get_my_spending_status(
    current_user: User = Depends(deps.require_student),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    """
    Today's and this month's spend for the signed-in student.
    """
    status = await SpendingLimitService.get_spending_status(
        db, current_user.id, current_user.school_id, policy
    )
    return SuccessResponse(data=status)


@router.get("/over-limit", response_model=SuccessResponse[List[OverLimitStudent]])
async def list_over_limit_students(
    current_user: User = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    """
    Students who cannot buy anything more today or this month.
    """
    students = await SpendingLimitService.get_over_limit_students(db, current_user.school_id, policy)
    return SuccessResponse(data=students)


@router.post("/check", response_model=SuccessResponse[PurchaseCheckResponse])
async def check_purchase(
    check_in: PurchaseCheckRequest,
    current_user: User = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    """
    Ask whether a student may spend an amount right now.
    """
    await deps.ensure_can_view_student(db, current_user, check_in.student_id)
    product = None
    if check_in.product_id:
        product = await WalletService.get_product(db, check_in.product_id, current_user.school_id)
        if not product:
            raise NotFoundError("Product not found")
    decision = await SpendingLimitService.check_purchase(
        db, check_in.student_id, current_user.school_id, check_in.amount, policy, product=product
    )
    return SuccessResponse(
        data=PurchaseCheckResponse(
            student_id=check_in.student_id,
            amount=check_in.amount,
            allowed=decision.allowed,
        ),
        message=decision.reason or "Purchase allowed",
    )


@router.get("/{student_id}", response_model=SuccessResponse[SpendingLimitResponse])
async def get_limit(
    student_id: UUID,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    await deps.ensure_can_view_student(db, current_user, student_id)
    limit = await SpendingLimitService.get_or_create_limit(db, student_id, current_user.school_id, policy)
    return SuccessResponse(data=SpendingLimitResponse.model_validate(limit))


@router.put("/{student_id}", response_model=SuccessResponse[SpendingLimitResponse])
async def update_limit(
    student_id: UUID,
    limit_in: SpendingLimitUpdate,
    current_user: User = Depends(deps.require_guardian),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    """
    Parents and school admins adjust a student's limits.
    """
    await deps.ensure_can_view_student(db, current_user, student_id)
    limit = await SpendingLimitService.update_limit(
        db, student_id, current_user.school_id, limit_in, policy
    )
    return SuccessResponse(data=SpendingLimitResponse.model_validate(limit), message="Limits updated")


@router.get("/{student_id}/status", response_model=SuccessResponse[SpendingStatus])
async def get_spending_status(
    student_id: UUID,
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    await deps.ensure_can_view_student(db, current_user, student_id)
    status = await SpendingLimitService.get_spending_status(db, student_id, current_user.school_id, policy)
    return SuccessResponse(data=status)
