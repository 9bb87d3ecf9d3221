"""Spending Limit Service - usage windows and purchase eligibility"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import WalletPolicy
from app.core.exceptions import StoreError, translate_store_errors
from app.models.enums import TransactionStatus, TransactionType, UserRole
from app.models.limits import SpendingLimit
from app.models.user import User
from app.models.wallet import Product, Transaction
from app.schemas.limits import (
    OverLimitStudent,
    PolicyDecision,
    SpendingLimitUpdate,
    SpendingStatus,
)
from app.services.limit_policy import (
    build_spending_status,
    day_window,
    evaluate_purchase,
    month_window,
    week_window,
)

logger = logging.getLogger(__name__)

# Ledger entries that count against a student's limits
SPEND_TYPES = (TransactionType.PURCHASE, TransactionType.GIFT)


class SpendingLimitService:
    """Service layer for spending limits and usage accounting"""

    @staticmethod
    @translate_store_errors("get_or_create_limit")
    async def get_or_create_limit(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        policy: WalletPolicy,
    ) -> SpendingLimit:
        """
        Return the student's limit row, creating it with the policy defaults
        the first time it is needed. A missing row never means "unlimited".
        """
        stmt = select(SpendingLimit).where(
            SpendingLimit.student_id == student_id,
            SpendingLimit.school_id == school_id,
        )
        result = await db.execute(stmt)
        limit = result.scalar_one_or_none()
        if limit:
            return limit

        # Concurrent first reads may race; the unique constraint settles it
        await db.execute(
            pg_insert(SpendingLimit)
            .values(
                student_id=student_id,
                school_id=school_id,
                daily_limit=policy.default_daily_limit,
                monthly_limit=policy.default_monthly_limit,
            )
            .on_conflict_do_nothing(constraint="uq_spending_limit_student_school")
        )
        await db.commit()
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    @translate_store_errors("update_limit")
    async def update_limit(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        data: SpendingLimitUpdate,
        policy: WalletPolicy,
    ) -> SpendingLimit:
        limit = await SpendingLimitService.get_or_create_limit(db, student_id, school_id, policy)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("restricted_products") is not None:
            # JSONB column holds plain strings
            update_data["restricted_products"] = [str(p) for p in update_data["restricted_products"]]
        for field in ("restricted_categories", "restricted_products"):
            if field in update_data and update_data[field] is None:
                update_data[field] = []
        for field, value in update_data.items():
            setattr(limit, field, value)
        await db.commit()
        await db.refresh(limit)
        logger.info(
            "Spending limit updated",
            extra={"student_id": str(student_id), "school_id": str(school_id)},
        )
        return limit

    @staticmethod
    @translate_store_errors("get_spent_between")
    async def get_spent_between(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        start: datetime,
        end: datetime,
    ) -> Decimal:
        """Sum of completed spend entries with start <= created_at < end"""
        total = await db.scalar(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.student_id == student_id,
                Transaction.school_id == school_id,
                Transaction.type.in_(SPEND_TYPES),
                Transaction.status == TransactionStatus.COMPLETED,
                Transaction.created_at >= start,
                Transaction.created_at < end,
            )
        )
        return Decimal(total or 0)

    @staticmethod
    async def get_spending_status(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        policy: WalletPolicy,
        now: Optional[datetime] = None,
        limit: Optional[SpendingLimit] = None,
    ) -> SpendingStatus:
        """
        Current day, week and month usage.

        Counters reset lazily: each call recomputes the totals for the local
        day, week and calendar month that contain `now`. The week is only
        summed when the student has a weekly cap. Pass `limit` when the row
        is already loaded.
        """
        if limit is None:
            limit = await SpendingLimitService.get_or_create_limit(db, student_id, school_id, policy)

        day_start, day_end = day_window(now, policy.tz)
        month_start, month_end = month_window(now, policy.tz)
        daily_spent = await SpendingLimitService.get_spent_between(
            db, student_id, school_id, day_start, day_end
        )
        monthly_spent = await SpendingLimitService.get_spent_between(
            db, student_id, school_id, month_start, month_end
        )

        weekly_limit = Decimal(limit.weekly_limit) if limit.weekly_limit is not None else None
        weekly_spent = Decimal("0")
        if weekly_limit is not None:
            week_start, week_end = week_window(now, policy.tz)
            weekly_spent = await SpendingLimitService.get_spent_between(
                db, student_id, school_id, week_start, week_end
            )

        return build_spending_status(
            student_id=student_id,
            daily_spent=daily_spent,
            monthly_spent=monthly_spent,
            daily_limit=Decimal(limit.daily_limit),
            monthly_limit=Decimal(limit.monthly_limit),
            weekly_spent=weekly_spent,
            weekly_limit=weekly_limit,
        )

    @staticmethod
    async def check_purchase(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        amount: Any,
        policy: WalletPolicy,
        now: Optional[datetime] = None,
        limit: Optional[SpendingLimit] = None,
        product: Optional[Product] = None,
    ) -> PolicyDecision:
        """
        Eligibility with a reason. Store failures deny the purchase.

        When `product` is given, the parent's product and category
        restrictions apply as well.
        """
        try:
            if limit is None:
                limit = await SpendingLimitService.get_or_create_limit(db, student_id, school_id, policy)
            status = await SpendingLimitService.get_spending_status(
                db, student_id, school_id, policy, now=now, limit=limit
            )
        except StoreError:
            logger.warning(
                "Purchase denied: spending status unavailable",
                extra={"student_id": str(student_id), "school_id": str(school_id)},
            )
            return PolicyDecision(allowed=False, reason="Spending status unavailable")

        return evaluate_purchase(
            amount,
            daily_spent=status.daily_spent,
            monthly_spent=status.monthly_spent,
            daily_limit=status.daily_limit,
            monthly_limit=status.monthly_limit,
            weekly_spent=status.weekly_spent,
            weekly_limit=status.weekly_limit,
            product_id=product.id if product else None,
            category=product.category if product else None,
            restricted_products=limit.restricted_products or (),
            restricted_categories=limit.restricted_categories or (),
        )

    @staticmethod
    async def can_make_purchase(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        amount: Any,
        policy: WalletPolicy,
        now: Optional[datetime] = None,
    ) -> bool:
        decision = await SpendingLimitService.check_purchase(
            db, student_id, school_id, amount, policy, now=now
        )
        return decision.allowed

    @staticmethod
    @translate_store_errors("get_over_limit_students")
    async def get_over_limit_students(
        db: AsyncSession,
        school_id: UUID,
        policy: WalletPolicy,
    ) -> List[OverLimitStudent]:
        result = await db.execute(
            select(User.id)
            .where(
                User.school_id == school_id,
                User.role == UserRole.STUDENT,
                User.is_active == True,
            )
            .order_by(User.last_name, User.first_name)
        )
        over_limit = []
        for student_id in result.scalars().all():
            status = await SpendingLimitService.get_spending_status(db, student_id, school_id, policy)
            if not status.can_purchase:
                over_limit.append(OverLimitStudent(student_id=student_id, status=status))
        return over_limit
