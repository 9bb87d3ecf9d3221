"""Deposit Service - parent-to-student fund transfers"""

import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import WalletPolicy
from app.core.exceptions import InvalidStateTransition, NotFoundError, translate_store_errors
from app.models.deposit import Deposit, PaymentMethod
from app.models.enums import DepositStatus, TransactionStatus, TransactionType
from app.models.user import ParentStudentLink
from app.models.wallet import Transaction, WalletProfile
from app.schemas.deposit import DepositRequest, ValidationResult
from app.services.limit_policy import to_money, validate_deposit_amount
from app.utils.time import get_utc_now

logger = logging.getLogger(__name__)


class DepositService:
    """Service layer for deposit validation and the deposit lifecycle"""

    @staticmethod
    @translate_store_errors("has_active_relationship")
    async def has_active_relationship(
        db: AsyncSession,
        parent_user_id: UUID,
        student_id: UUID,
        school_id: UUID,
    ) -> bool:
        link_id = await db.scalar(
            select(ParentStudentLink.id).where(
                ParentStudentLink.parent_user_id == parent_user_id,
                ParentStudentLink.student_id == student_id,
                ParentStudentLink.school_id == school_id,
                ParentStudentLink.is_active == True,
            )
        )
        return link_id is not None

    @staticmethod
    async def validate_deposit(
        db: AsyncSession,
        request: DepositRequest,
        policy: WalletPolicy,
    ) -> ValidationResult:
        """
        Check a deposit request without touching any balance.

        Amount bounds are checked first so obviously bad requests never
        reach the database.
        """
        amount_check = validate_deposit_amount(request.amount, policy.max_deposit_amount)
        if not amount_check.valid:
            return amount_check

        linked = await DepositService.has_active_relationship(
            db, request.parent_user_id, request.student_id, request.school_id
        )
        if not linked:
            return ValidationResult(valid=False, reason="No active parent-student relationship")

        if request.payment_method_id is not None:
            method = await DepositService._get_payment_method(
                db, request.payment_method_id, request.parent_user_id
            )
            if not method:
                return ValidationResult(valid=False, reason="Payment method not found")

        return ValidationResult(valid=True)

    @staticmethod
    @translate_store_errors("get_payment_method")
    async def _get_payment_method(
        db: AsyncSession,
        payment_method_id: UUID,
        parent_user_id: UUID,
    ) -> Optional[PaymentMethod]:
        result = await db.execute(
            select(PaymentMethod).where(
                PaymentMethod.id == payment_method_id,
                PaymentMethod.parent_user_id == parent_user_id,
                PaymentMethod.is_active == True,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    @translate_store_errors("create_deposit")
    async def create_deposit(
        db: AsyncSession,
        request: DepositRequest,
        policy: WalletPolicy,
    ) -> tuple[Optional[Deposit], ValidationResult]:
        """
        Validate and persist a PENDING deposit.
        Returns (None, result) when validation fails.
        """
        validation = await DepositService.validate_deposit(db, request, policy)
        if not validation.valid:
            logger.info(
                "Deposit rejected",
                extra={
                    "parent_user_id": str(request.parent_user_id),
                    "student_id": str(request.student_id),
                    "reason": validation.reason,
                },
            )
            return None, validation

        deposit = Deposit(
            parent_user_id=request.parent_user_id,
            student_id=request.student_id,
            school_id=request.school_id,
            amount=to_money(request.amount),
            payment_method_id=request.payment_method_id,
            notes=request.notes,
            status=DepositStatus.PENDING,
            deposited_at=get_utc_now(),
        )
        db.add(deposit)
        await db.commit()
        await db.refresh(deposit)
        return deposit, validation

    @staticmethod
    @translate_store_errors("get_deposit")
    async def get_deposit(
        db: AsyncSession,
        deposit_id: UUID,
        school_id: UUID,
        for_update: bool = False,
    ) -> Optional[Deposit]:
        stmt = select(Deposit).where(Deposit.id == deposit_id, Deposit.school_id == school_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def _get_pending(db: AsyncSession, deposit_id: UUID, school_id: UUID) -> Deposit:
        deposit = await DepositService.get_deposit(db, deposit_id, school_id, for_update=True)
        if not deposit:
            raise NotFoundError("Deposit not found")
        if deposit.status != DepositStatus.PENDING:
            raise InvalidStateTransition(
                f"Deposit is {deposit.status.value}; only PENDING deposits can change"
            )
        return deposit

    @staticmethod
    @translate_store_errors("complete_deposit")
    async def complete_deposit(db: AsyncSession, deposit_id: UUID, school_id: UUID) -> Deposit:
        """
        PENDING -> COMPLETED. Credits the wallet and writes the ledger entry
        in the same transaction as the status change.
        """
        deposit = await DepositService._get_pending(db, deposit_id, school_id)

        result = await db.execute(
            select(WalletProfile)
            .where(WalletProfile.student_id == deposit.student_id)
            .with_for_update()
        )
        wallet = result.scalar_one_or_none()
        if wallet is None:
            wallet = WalletProfile(
                student_id=deposit.student_id,
                school_id=deposit.school_id,
                balance=Decimal("0.00"),
            )
            db.add(wallet)

        wallet.balance = Decimal(wallet.balance) + Decimal(deposit.amount)
        db.add(Transaction(
            student_id=deposit.student_id,
            school_id=deposit.school_id,
            type=TransactionType.DEPOSIT,
            status=TransactionStatus.COMPLETED,
            amount=deposit.amount,
            description="Parent deposit",
        ))
        deposit.status = DepositStatus.COMPLETED
        deposit.completed_at = get_utc_now()

        await db.commit()
        await db.refresh(deposit)
        logger.info(
            "Deposit completed",
            extra={"deposit_id": str(deposit.id), "student_id": str(deposit.student_id)},
        )
        return deposit

    @staticmethod
    @translate_store_errors("fail_deposit")
    async def fail_deposit(db: AsyncSession, deposit_id: UUID, school_id: UUID, reason: str) -> Deposit:
        deposit = await DepositService._get_pending(db, deposit_id, school_id)
        deposit.status = DepositStatus.FAILED
        deposit.failure_reason = reason[:255]
        await db.commit()
        await db.refresh(deposit)
        logger.warning("Deposit failed", extra={"deposit_id": str(deposit.id), "reason": reason})
        return deposit

    @staticmethod
    @translate_store_errors("cancel_deposit")
    async def cancel_deposit(
        db: AsyncSession,
        deposit_id: UUID,
        school_id: UUID,
        parent_user_id: UUID,
    ) -> Deposit:
        deposit = await DepositService._get_pending(db, deposit_id, school_id)
        if deposit.parent_user_id != parent_user_id:
            # Do not reveal other parents' deposits
            raise NotFoundError("Deposit not found")
        deposit.status = DepositStatus.CANCELLED
        await db.commit()
        await db.refresh(deposit)
        return deposit

    @staticmethod
    @translate_store_errors("get_parent_deposit_history")
    async def get_parent_deposit_history(
        db: AsyncSession,
        parent_user_id: UUID,
        school_id: UUID,
    ) -> List[Deposit]:
        result = await db.execute(
            select(Deposit)
            .where(Deposit.parent_user_id == parent_user_id, Deposit.school_id == school_id)
            .order_by(desc(Deposit.created_at), desc(Deposit.id))
        )
        return list(result.scalars().all())
