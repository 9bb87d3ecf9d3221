"""Alert Service - parent alerts raised by spending activity"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, func, desc
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.config import WalletPolicy
from app.core.exceptions import translate_store_errors
from app.models.alert import Alert, AlertConfig
from app.models.enums import AlertSeverity, AlertType
from app.models.user import ParentStudentLink, User
from app.models.wallet import Transaction, WalletProfile
from app.schemas.alert import AlertConfigUpdate, AlertCreate
from app.schemas.limits import SpendingStatus
from app.services.limit_policy import day_window
from app.services.notification_service import send_alert_email
from app.services.spending_limit_service import SpendingLimitService
from app.utils.time import get_utc_now

logger = logging.getLogger(__name__)


@dataclass
class AlertCandidate:
    type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


def build_alert_candidates(
    status: SpendingStatus,
    balance: Optional[Decimal],
    recent_transactions: int,
    config: AlertConfig,
) -> List[AlertCandidate]:
    """Alerts a student's current numbers call for, before de-duplication"""
    candidates = []
    daily_threshold = Decimal(config.daily_alert_threshold)
    monthly_threshold = Decimal(config.monthly_alert_threshold)

    if status.daily_spent > daily_threshold:
        severity = AlertSeverity.HIGH if status.daily_spent > daily_threshold * Decimal("1.5") else AlertSeverity.MEDIUM
        candidates.append(AlertCandidate(
            type=AlertType.HIGH_SPENDING,
            severity=severity,
            title="High spending today",
            message=f"Your child has spent ${status.daily_spent:.2f} today (alert threshold: ${daily_threshold:.2f})",
            details={"daily_total": str(status.daily_spent), "threshold": str(daily_threshold)},
        ))
    elif status.monthly_spent > monthly_threshold:
        candidates.append(AlertCandidate(
            type=AlertType.HIGH_SPENDING,
            severity=AlertSeverity.MEDIUM,
            title="High spending this month",
            message=f"Your child has spent ${status.monthly_spent:.2f} this month (alert threshold: ${monthly_threshold:.2f})",
            details={"monthly_total": str(status.monthly_spent), "threshold": str(monthly_threshold)},
        ))

    if not status.can_purchase:
        if status.daily_spent >= status.daily_limit:
            period = "daily"
        elif status.weekly_limit is not None and status.weekly_spent >= status.weekly_limit:
            period = "weekly"
        else:
            period = "monthly"
        candidates.append(AlertCandidate(
            type=AlertType.LIMIT_EXCEEDED,
            severity=AlertSeverity.HIGH,
            title="Spending limit reached",
            message=f"Your child has reached the {period} spending limit",
            details={
                "period": period,
                "daily_spent": str(status.daily_spent),
                "monthly_spent": str(status.monthly_spent),
            },
        ))

    low_balance = Decimal(config.low_balance_threshold)
    if balance is not None and balance < low_balance:
        candidates.append(AlertCandidate(
            type=AlertType.BALANCE_LOW,
            severity=AlertSeverity.MEDIUM,
            title="Low balance",
            message=f"Your child's balance is low: ${balance:.2f}",
            details={"balance": str(balance), "threshold": str(low_balance)},
        ))

    if recent_transactions > config.suspicious_activity_threshold:
        candidates.append(AlertCandidate(
            type=AlertType.SUSPICIOUS_ACTIVITY,
            severity=AlertSeverity.HIGH,
            title="Unusual activity detected",
            message=f"{recent_transactions} transactions were made in the last hour",
            details={"count": recent_transactions},
        ))

    return candidates


class AlertService:
    """Service layer for parent alerts"""

    @staticmethod
    @translate_store_errors("create_alert")
    async def create_alert(db: AsyncSession, data: AlertCreate) -> UUID:
        alert = Alert(
            parent_user_id=data.parent_user_id,
            student_id=data.student_id,
            school_id=data.school_id,
            type=data.type,
            severity=data.severity,
            title=data.title,
            message=data.message,
            details=data.details,
            is_read=False,
        )
        db.add(alert)
        await db.commit()
        await db.refresh(alert)
        logger.info(
            "Alert created",
            extra={"alert_id": str(alert.id), "type": data.type.value, "severity": data.severity.value},
        )

        if data.severity == AlertSeverity.HIGH:
            await AlertService._deliver(db, data)
        return alert.id

    @staticmethod
    async def _deliver(db: AsyncSession, data: AlertCreate) -> None:
        try:
            parent = await db.get(User, data.parent_user_id)
        except SQLAlchemyError:
            logger.exception("Could not load parent for alert delivery")
            return
        if parent is None:
            return
        await run_in_threadpool(send_alert_email, parent.email, parent.first_name, data.title, data.message)

    @staticmethod
    @translate_store_errors("get_unread_alerts")
    async def get_unread_alerts(
        db: AsyncSession,
        parent_user_id: UUID,
        school_id: UUID,
    ) -> List[Alert]:
        """Unread alerts, newest first; id breaks created_at ties"""
        result = await db.execute(
            select(Alert)
            .where(
                Alert.parent_user_id == parent_user_id,
                Alert.school_id == school_id,
                Alert.is_read == False,
            )
            .order_by(desc(Alert.created_at), desc(Alert.id))
        )
        return list(result.scalars().all())

    @staticmethod
    @translate_store_errors("mark_alert_as_read")
    async def mark_alert_as_read(
        db: AsyncSession,
        alert_id: UUID,
        parent_user_id: UUID,
    ) -> Optional[Alert]:
        """One-way: read alerts stay read and keep their original read_at"""
        result = await db.execute(
            select(Alert).where(Alert.id == alert_id, Alert.parent_user_id == parent_user_id)
        )
        alert = result.scalar_one_or_none()
        if not alert:
            return None
        if not alert.is_read:
            alert.is_read = True
            alert.read_at = get_utc_now()
            await db.commit()
            await db.refresh(alert)
        return alert

    @staticmethod
    @translate_store_errors("get_or_create_alert_config")
    async def get_or_create_alert_config(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        policy: WalletPolicy,
    ) -> AlertConfig:
        stmt = select(AlertConfig).where(
            AlertConfig.student_id == student_id,
            AlertConfig.school_id == school_id,
        )
        result = await db.execute(stmt)
        config = result.scalar_one_or_none()
        if config:
            return config

        await db.execute(
            pg_insert(AlertConfig)
            .values(
                student_id=student_id,
                school_id=school_id,
                daily_alert_threshold=policy.daily_alert_threshold,
                monthly_alert_threshold=policy.monthly_alert_threshold,
                low_balance_threshold=policy.low_balance_threshold,
                suspicious_activity_threshold=policy.suspicious_activity_threshold,
                notify_parent=True,
            )
            .on_conflict_do_nothing(constraint="uq_alert_config_student_school")
        )
        await db.commit()
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    @translate_store_errors("update_alert_config")
    async def update_alert_config(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        data: AlertConfigUpdate,
        policy: WalletPolicy,
    ) -> AlertConfig:
        config = await AlertService.get_or_create_alert_config(db, student_id, school_id, policy)
        for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(config, key, value)
        await db.commit()
        await db.refresh(config)
        return config

    @staticmethod
    @translate_store_errors("evaluate_alerts_for_transaction")
    async def evaluate_alerts_for_transaction(
        db: AsyncSession,
        student_id: UUID,
        school_id: UUID,
        policy: WalletPolicy,
        now: Optional[datetime] = None,
    ) -> List[UUID]:
        """
        Raise alerts for every active parent of the student after a ledger
        change. An alert type is raised at most once per parent per local day.
        """
        result = await db.execute(
            select(ParentStudentLink.parent_user_id).where(
                ParentStudentLink.student_id == student_id,
                ParentStudentLink.school_id == school_id,
                ParentStudentLink.is_active == True,
            )
        )
        parent_ids = list(result.scalars().all())
        if not parent_ids:
            return []

        config = await AlertService.get_or_create_alert_config(db, student_id, school_id, policy)
        if not config.notify_parent:
            return []

        status = await SpendingLimitService.get_spending_status(db, student_id, school_id, policy, now=now)
        balance = await db.scalar(
            select(WalletProfile.balance).where(WalletProfile.student_id == student_id)
        )
        current = now or get_utc_now()
        recent = await db.scalar(
            select(func.count(Transaction.id)).where(
                Transaction.student_id == student_id,
                Transaction.school_id == school_id,
                Transaction.created_at >= current - timedelta(hours=1),
            )
        )

        candidates = build_alert_candidates(
            status,
            Decimal(balance) if balance is not None else None,
            recent or 0,
            config,
        )
        if not candidates:
            return []

        day_start, _ = day_window(now, policy.tz)
        created = []
        for parent_user_id in parent_ids:
            for candidate in candidates:
                already = await db.scalar(
                    select(func.count(Alert.id)).where(
                        Alert.parent_user_id == parent_user_id,
                        Alert.student_id == student_id,
                        Alert.type == candidate.type,
                        Alert.created_at >= day_start,
                    )
                )
                if already:
                    continue
                alert_id = await AlertService.create_alert(db, AlertCreate(
                    parent_user_id=parent_user_id,
                    student_id=student_id,
                    school_id=school_id,
                    type=candidate.type,
                    severity=candidate.severity,
                    title=candidate.title,
                    message=candidate.message,
                    details=candidate.details,
                ))
                created.append(alert_id)
        return created
