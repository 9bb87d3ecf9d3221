from typing import Any, List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.config import WalletPolicy
from app.models.user import User
from app.schemas.gift import (
    GiftCreate,
    GiftRedeem,
    GiftResponse,
    ThankYouCreate,
    ThankYouResponse,
)
from app.schemas.responses import SuccessResponse
from app.services.gift_service import GiftService

router = APIRouter()


@router.post("", response_model=SuccessResponse[GiftResponse], status_code=status.HTTP_201_CREATED)
async def send_gift(
    gift_in: GiftCreate,
    current_user: User = Depends(deps.require_student),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    """
    Buy a catalog item for a classmate. The price counts toward the
    sender's spending limits.
    """
    gift = await GiftService.send_gift(
        db,
        current_user.id,
        gift_in.receiver_id,
        current_user.school_id,
        gift_in.product_id,
        gift_in.message,
        policy,
    )
    return SuccessResponse(data=GiftResponse.model_validate(gift), message="Gift sent")


@router.get("/received", response_model=SuccessResponse[List[GiftResponse]])
async def list_received_gifts(
    current_user: User = Depends(deps.require_student),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    gifts = await GiftService.list_received_gifts(db, current_user.id, current_user.school_id)
    return SuccessResponse(data=[GiftResponse.model_validate(g) for g in gifts])


@router.get("/sent", response_model=SuccessResponse[List[GiftResponse]])
async def list_sent_gifts(
    current_user: User = Depends(deps.require_student),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    gifts = await GiftService.list_sent_gifts(db, current_user.id, current_user.school_id)
    return SuccessResponse(data=[GiftResponse.model_validate(g) for g in gifts])


@router.post("/redeem", response_model=SuccessResponse[GiftResponse])
async def redeem_gift(
    redeem_in: GiftRedeem,
    current_user: User = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Hand over a gift at a point of sale. A code works once.
    """
    gift = await GiftService.redeem_gift(
        db, redeem_in.code, redeem_in.operating_unit_id, current_user.school_id
    )
    return SuccessResponse(data=GiftResponse.model_validate(gift), message="Gift redeemed")


@router.post(
    "/{gift_id}/thank-you",
    response_model=SuccessResponse[ThankYouResponse],
    status_code=status.HTTP_201_CREATED,
)
async def send_thank_you_note(
    gift_id: UUID,
    note_in: ThankYouCreate,
    current_user: User = Depends(deps.require_student),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    note = await GiftService.send_thank_you_note(
        db, gift_id, current_user.id, current_user.school_id, note_in.body
    )
    return SuccessResponse(data=ThankYouResponse.model_validate(note), message="Thank-you note sent")


@router.get("/thank-you-notes", response_model=SuccessResponse[List[ThankYouResponse]])
async def list_thank_you_notes(
    current_user: User = Depends(deps.require_student),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    notes = await GiftService.list_thank_you_notes(db, current_user.id)
    return SuccessResponse(data=[ThankYouResponse.model_validate(n) for n in notes])
