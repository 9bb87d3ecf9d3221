"""Reporting Service - read-only rollups of the transaction ledger"""

from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import translate_store_errors
from app.models.enums import TransactionStatus, TransactionType, UserRole
from app.models.school import OperatingUnit
from app.models.user import ParentStudentLink, User
from app.models.wallet import Product, Transaction, WalletProfile
from app.schemas.report import (
    Bucket,
    ParentReport,
    SchoolReport,
    TopOperatingUnit,
    TopProduct,
    TransactionReport,
)
from app.utils.time import get_utc_now, to_naive_utc

CENT = Decimal("0.01")
TOP_N = 5


def _round(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _is_completed(txn, *types: TransactionType) -> bool:
    return txn.status == TransactionStatus.COMPLETED and txn.type in types


def summarize_transactions(txns: Sequence, period: str) -> TransactionReport:
    """Count and total ledger entries, overall and per type and status"""
    by_type: Dict[str, Bucket] = {}
    by_status: Dict[str, Bucket] = {}
    total = Decimal("0")

    for txn in txns:
        amount = Decimal(txn.amount)
        total += amount
        for key, buckets in ((txn.type.value, by_type), (txn.status.value, by_status)):
            bucket = buckets.setdefault(key, Bucket(count=0, amount=Decimal("0")))
            bucket.count += 1
            bucket.amount += amount

    for bucket in list(by_type.values()) + list(by_status.values()):
        bucket.amount = _round(bucket.amount)

    count = len(txns)
    return TransactionReport(
        period=period,
        total_transactions=count,
        total_amount=_round(total),
        by_type=by_type,
        by_status=by_status,
        average_transaction=_round(total / count) if count else Decimal("0.00"),
    )


def rank_products(txns: Iterable, names: Dict[UUID, str], limit: int = TOP_N) -> List[TopProduct]:
    """Best sellers by revenue from completed purchases; ties go by name"""
    stats = defaultdict(lambda: [0, Decimal("0")])
    for txn in txns:
        if txn.product_id and _is_completed(txn, TransactionType.PURCHASE):
            stats[txn.product_id][0] += 1
            stats[txn.product_id][1] += Decimal(txn.amount)

    ranked = sorted(
        stats.items(),
        key=lambda item: (-item[1][1], names.get(item[0], "Unknown")),
    )
    return [
        TopProduct(
            product_id=product_id,
            name=names.get(product_id, "Unknown"),
            quantity=quantity,
            revenue=_round(revenue),
        )
        for product_id, (quantity, revenue) in ranked[:limit]
    ]


def rank_operating_units(txns: Iterable, names: Dict[UUID, str], limit: int = TOP_N) -> List[TopOperatingUnit]:
    revenue_by_unit: Dict[UUID, Decimal] = defaultdict(Decimal)
    for txn in txns:
        if txn.operating_unit_id and _is_completed(txn, TransactionType.PURCHASE):
            revenue_by_unit[txn.operating_unit_id] += Decimal(txn.amount)

    ranked = sorted(
        revenue_by_unit.items(),
        key=lambda item: (-item[1], names.get(item[0], "Unknown")),
    )
    return [
        TopOperatingUnit(
            operating_unit_id=unit_id,
            name=names.get(unit_id, "Unknown"),
            revenue=_round(revenue),
        )
        for unit_id, revenue in ranked[:limit]
    ]


class ReportingService:
    """Service layer for parent, school and operating-unit reports"""

    @staticmethod
    def _window_start(window_days: int, now: Optional[datetime]) -> datetime:
        return (to_naive_utc(now) if now else get_utc_now()) - timedelta(days=window_days)

    @staticmethod
    @translate_store_errors("get_student_transaction_report")
    async def get_student_transaction_report(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        start: datetime,
        end: datetime,
    ) -> TransactionReport:
        start, end = to_naive_utc(start), to_naive_utc(end)
        result = await db.execute(
            select(Transaction)
            .where(
                Transaction.student_id == student_id,
                Transaction.school_id == school_id,
                Transaction.created_at >= start,
                Transaction.created_at <= end,
            )
            .order_by(desc(Transaction.created_at))
        )
        txns = list(result.scalars().all())
        return summarize_transactions(txns, f"{start.date().isoformat()} to {end.date().isoformat()}")

    @staticmethod
    @translate_store_errors("get_school_report")
    async def get_school_report(
        db: AsyncSession,
        school_id: UUID,
        window_days: int = 30,
        now: Optional[datetime] = None,
    ) -> SchoolReport:
        start = ReportingService._window_start(window_days, now)

        student_count = await db.scalar(
            select(func.count(User.id)).where(
                User.school_id == school_id,
                User.role == UserRole.STUDENT,
                User.is_active == True,
            )
        ) or 0

        result = await db.execute(
            select(Transaction).where(
                Transaction.school_id == school_id,
                Transaction.created_at >= start,
            )
        )
        txns = list(result.scalars().all())

        total_revenue = sum(
            (Decimal(t.amount) for t in txns if _is_completed(t, TransactionType.PURCHASE)),
            Decimal("0"),
        )

        product_ids = {t.product_id for t in txns if t.product_id}
        unit_ids = {t.operating_unit_id for t in txns if t.operating_unit_id}
        product_names: Dict[UUID, str] = {}
        unit_names: Dict[UUID, str] = {}
        if product_ids:
            rows = await db.execute(select(Product.id, Product.name).where(Product.id.in_(product_ids)))
            product_names = {row.id: row.name for row in rows}
        if unit_ids:
            rows = await db.execute(
                select(OperatingUnit.id, OperatingUnit.name).where(OperatingUnit.id.in_(unit_ids))
            )
            unit_names = {row.id: row.name for row in rows}

        return SchoolReport(
            school_id=school_id,
            student_count=student_count,
            total_transactions=len(txns),
            total_revenue=_round(total_revenue),
            average_spend_per_student=_round(total_revenue / student_count) if student_count else Decimal("0.00"),
            top_products=rank_products(txns, product_names),
            top_operating_units=rank_operating_units(txns, unit_names),
            period=f"Last {window_days} days",
        )

    @staticmethod
    @translate_store_errors("get_parent_report")
    async def get_parent_report(
        db: AsyncSession,
        parent_user_id: UUID,
        school_id: UUID,
        window_days: int = 30,
        now: Optional[datetime] = None,
    ) -> ParentReport:
        period = f"Last {window_days} days"
        result = await db.execute(
            select(ParentStudentLink.student_id).where(
                ParentStudentLink.parent_user_id == parent_user_id,
                ParentStudentLink.school_id == school_id,
                ParentStudentLink.is_active == True,
            )
        )
        student_ids = list(result.scalars().all())
        if not student_ids:
            return ParentReport(parent_user_id=parent_user_id, period=period)

        total_balance = await db.scalar(
            select(func.coalesce(func.sum(WalletProfile.balance), 0)).where(
                WalletProfile.student_id.in_(student_ids),
                WalletProfile.school_id == school_id,
            )
        )

        start = ReportingService._window_start(window_days, now)
        result = await db.execute(
            select(Transaction).where(
                Transaction.student_id.in_(student_ids),
                Transaction.school_id == school_id,
                Transaction.created_at >= start,
            )
        )
        txns = list(result.scalars().all())
        deposited = sum(
            (Decimal(t.amount) for t in txns if _is_completed(t, TransactionType.DEPOSIT)),
            Decimal("0"),
        )
        spent = sum(
            (Decimal(t.amount) for t in txns if _is_completed(t, TransactionType.PURCHASE, TransactionType.GIFT)),
            Decimal("0"),
        )

        return ParentReport(
            parent_user_id=parent_user_id,
            student_count=len(student_ids),
            total_deposited=_round(deposited),
            total_spent=_round(spent),
            total_balance=_round(Decimal(total_balance or 0)),
            period=period,
        )

    @staticmethod
    @translate_store_errors("get_operating_unit_report")
    async def get_operating_unit_report(
        db: AsyncSession,
        operating_unit_id: UUID,
        school_id: UUID,
        window_days: int = 30,
        now: Optional[datetime] = None,
    ) -> TransactionReport:
        start = ReportingService._window_start(window_days, now)
        result = await db.execute(
            select(Transaction).where(
                Transaction.operating_unit_id == operating_unit_id,
                Transaction.school_id == school_id,
                Transaction.created_at >= start,
            )
        )
        return summarize_transactions(list(result.scalars().all()), f"Last {window_days} days")
