"""Gift Service - peer gifts and thank-you notes"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import WalletPolicy
from app.core.exceptions import (
    InvalidStateTransition,
    NotFoundError,
    PermissionDenied,
    WalletError,
    translate_store_errors,
)
from app.core.security import generate_redemption_code
from app.models.enums import GiftStatus, TransactionStatus, TransactionType
from app.models.gift import Gift, ThankYouNote
from app.models.school import OperatingUnit
from app.models.wallet import Transaction
from app.services.wallet_service import WalletService
from app.utils.time import get_utc_now

logger = logging.getLogger(__name__)


class GiftService:
    """Service layer for gifts between students of the same school"""

    @staticmethod
    @translate_store_errors("send_gift")
    async def send_gift(
        db: AsyncSession,
        sender_id: UUID,
        receiver_id: UUID,
        school_id: UUID,
        product_id: UUID,
        message: Optional[str],
        policy: WalletPolicy,
    ) -> Gift:
        """
        Buy a catalog item for another student.

        The sender's debit, the gift row and its ledger entry are committed
        together, so a failure leaves neither a debit without a gift nor a
        gift without a debit.
        """
        if sender_id == receiver_id:
            raise WalletError("You cannot send a gift to yourself")
        if not await WalletService.get_student(db, receiver_id, school_id):
            raise NotFoundError("Receiver not found")
        product = await WalletService.get_product(db, product_id, school_id)
        if not product or not product.is_available:
            raise NotFoundError("Product not available")

        price = await WalletService.charge(db, sender_id, school_id, product, policy)

        gift = Gift(
            sender_id=sender_id,
            receiver_id=receiver_id,
            school_id=school_id,
            product_id=product.id,
            item_name=product.name,
            item_price=price,
            message=message,
            redemption_code=generate_redemption_code(),
            status=GiftStatus.PENDING,
        )
        db.add(gift)
        db.add(Transaction(
            student_id=sender_id,
            school_id=school_id,
            type=TransactionType.GIFT,
            status=TransactionStatus.COMPLETED,
            amount=price,
            product_id=product.id,
            description=f"Gift: {product.name}",
        ))
        await db.commit()
        await db.refresh(gift)
        logger.info("Gift sent", extra={"gift_id": str(gift.id), "sender_id": str(sender_id)})

        await WalletService.run_alerts(db, sender_id, school_id, policy)
        return gift

    @staticmethod
    @translate_store_errors("redeem_gift")
    async def redeem_gift(
        db: AsyncSession,
        code: str,
        operating_unit_id: UUID,
        school_id: UUID,
    ) -> Gift:
        result = await db.execute(
            select(Gift)
            .where(Gift.redemption_code == code.strip().upper(), Gift.school_id == school_id)
            .with_for_update()
        )
        gift = result.scalar_one_or_none()
        if not gift:
            raise NotFoundError("Gift not found")
        if gift.status == GiftStatus.REDEEMED:
            raise InvalidStateTransition("Gift has already been redeemed")

        unit_id = await db.scalar(
            select(OperatingUnit.id).where(
                OperatingUnit.id == operating_unit_id,
                OperatingUnit.school_id == school_id,
            )
        )
        if not unit_id:
            raise NotFoundError("Operating unit not found")

        gift.status = GiftStatus.REDEEMED
        gift.redeemed_at = get_utc_now()
        gift.redeemed_unit_id = operating_unit_id
        await db.commit()
        await db.refresh(gift)
        return gift

    @staticmethod
    @translate_store_errors("list_received_gifts")
    async def list_received_gifts(db: AsyncSession, student_id: UUID, school_id: UUID) -> List[Gift]:
        result = await db.execute(
            select(Gift)
            .where(Gift.receiver_id == student_id, Gift.school_id == school_id)
            .order_by(desc(Gift.created_at))
        )
        return list(result.scalars().all())

    @staticmethod
    @translate_store_errors("list_sent_gifts")
    async def list_sent_gifts(db: AsyncSession, student_id: UUID, school_id: UUID) -> List[Gift]:
        result = await db.execute(
            select(Gift)
            .where(Gift.sender_id == student_id, Gift.school_id == school_id)
            .order_by(desc(Gift.created_at))
        )
        return list(result.scalars().all())

    @staticmethod
    @translate_store_errors("send_thank_you_note")
    async def send_thank_you_note(
        db: AsyncSession,
        gift_id: UUID,
        user_id: UUID,
        school_id: UUID,
        body: str,
    ) -> ThankYouNote:
        """Only the receiver of a gift may thank its sender"""
        result = await db.execute(
            select(Gift).where(Gift.id == gift_id, Gift.school_id == school_id)
        )
        gift = result.scalar_one_or_none()
        if not gift:
            raise NotFoundError("Gift not found")
        if gift.receiver_id != user_id:
            raise PermissionDenied("Only the gift receiver can send a thank-you note")

        note = ThankYouNote(
            gift_id=gift.id,
            sender_id=user_id,
            receiver_id=gift.sender_id,
            body=body,
        )
        db.add(note)
        await db.commit()
        await db.refresh(note)
        return note

    @staticmethod
    @translate_store_errors("list_thank_you_notes")
    async def list_thank_you_notes(db: AsyncSession, user_id: UUID) -> List[ThankYouNote]:
        result = await db.execute(
            select(ThankYouNote)
            .where(ThankYouNote.receiver_id == user_id)
            .order_by(desc(ThankYouNote.created_at))
        )
        return list(result.scalars().all())
