from typing import Any, List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.config import WalletPolicy
from app.models.user import User
from app.schemas.responses import SuccessResponse
from app.schemas.wallet import (
    BalanceResponse,
    FavoriteToggleResponse,
    ProductResponse,
    PurchaseCreate,
    TransactionResponse,
)
from app.services.wallet_service import WalletService

router = APIRouter()


@router.get("/balance", response_model=SuccessResponse[BalanceResponse])
async def get_balance(
    current_user: User = Depends(deps.require_student),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    balance = await WalletService.get_balance(db, current_user.id)
    return SuccessResponse(data=balance)


@router.get("/products", response_model=SuccessResponse[List[ProductResponse]])
async def list_products(
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Items currently on sale at the student's school.
    """
    products = await WalletService.list_products(db, current_user.school_id)
    return SuccessResponse(data=[ProductResponse.model_validate(p) for p in products])


@router.get("/favorites", response_model=SuccessResponse[List[ProductResponse]])
async def list_favorites(
    current_user: User = Depends(deps.require_student),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    products = await WalletService.list_favorites(db, current_user.id, current_user.school_id)
    return SuccessResponse(data=[ProductResponse.model_validate(p) for p in products])


@router.post("/favorites/{product_id}", response_model=SuccessResponse[FavoriteToggleResponse])
async def toggle_favorite(
    product_id: UUID,
    current_user: User = Depends(deps.require_student),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    is_favorite = await WalletService.toggle_favorite(db, current_user.id, current_user.school_id, product_id)
    return SuccessResponse(
        data=FavoriteToggleResponse(product_id=product_id, is_favorite=is_favorite),
        message="Added to favorites" if is_favorite else "Removed from favorites",
    )


@router.get("/transactions", response_model=SuccessResponse[List[TransactionResponse]])
async def list_transactions(
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(deps.require_student),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    txns = await WalletService.list_transactions(db, current_user.id, current_user.school_id, limit=limit)
    return SuccessResponse(data=[TransactionResponse.model_validate(t) for t in txns])


@router.post("/purchases", response_model=SuccessResponse[TransactionResponse])
async def record_purchase(
    purchase_in: PurchaseCreate,
    current_user: User = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    """
    Point-of-sale charge. Rejected with 400 when it would break a
    spending limit or the balance is too low.
    """
    txn = await WalletService.record_purchase(
        db,
        purchase_in.student_id,
        current_user.school_id,
        purchase_in.product_id,
        purchase_in.operating_unit_id,
        policy,
    )
    return SuccessResponse(data=TransactionResponse.model_validate(txn), message="Purchase recorded")
