"""Unit tests for alert rules and AlertService."""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

from sqlalchemy.dialects import postgresql
from sqlalchemy.sql.elements import BindParameter

from app.models.alert import Alert, AlertConfig
from app.models.enums import AlertSeverity, AlertType
from app.schemas.alert import AlertCreate
from app.services.alert_service import AlertService, build_alert_candidates
from app.services.limit_policy import build_spending_status


def _config(**overrides):
    values = dict(
        daily_alert_threshold=Decimal("50"),
        monthly_alert_threshold=Decimal("500"),
        low_balance_threshold=Decimal("10"),
        suspicious_activity_threshold=5,
        notify_parent=True,
    )
    values.update(overrides)
    return AlertConfig(**values)


def _status(daily="0", monthly="0", daily_limit="100", monthly_limit="1000"):
    return build_spending_status(
        uuid4(),
        daily_spent=Decimal(daily),
        monthly_spent=Decimal(monthly),
        daily_limit=Decimal(daily_limit),
        monthly_limit=Decimal(monthly_limit),
    )


def _types(candidates):
    return {c.type for c in candidates}


# ---------------------------------------------------------------------------
# build_alert_candidates
# ---------------------------------------------------------------------------

def test_quiet_activity_raises_nothing():
    assert build_alert_candidates(_status("20", "100"), Decimal("80"), 1, _config()) == []


def test_daily_spend_over_threshold_is_medium():
    candidates = build_alert_candidates(_status("60", "60"), Decimal("80"), 1, _config())
    assert len(candidates) == 1
    assert candidates[0].type == AlertType.HIGH_SPENDING
    assert candidates[0].severity == AlertSeverity.MEDIUM


def test_daily_spend_far_over_threshold_is_high():
    candidates = build_alert_candidates(_status("80", "80"), Decimal("80"), 1, _config())
    assert candidates[0].type == AlertType.HIGH_SPENDING
    assert candidates[0].severity == AlertSeverity.HIGH


def test_monthly_threshold_alone_raises_high_spending():
    candidates = build_alert_candidates(_status("10", "600"), Decimal("80"), 1, _config())
    assert _types(candidates) == {AlertType.HIGH_SPENDING}
    assert candidates[0].title == "High spending this month"


def test_reaching_limit_raises_limit_exceeded():
    candidates = build_alert_candidates(
        _status("100", "100"), Decimal("80"), 1, _config(daily_alert_threshold=Decimal("500"))
    )
    assert _types(candidates) == {AlertType.LIMIT_EXCEEDED}
    assert candidates[0].severity == AlertSeverity.HIGH
    assert candidates[0].details["period"] == "daily"


def test_reaching_weekly_cap_names_the_week():
    status = build_spending_status(
        uuid4(),
        daily_spent=Decimal("20"),
        monthly_spent=Decimal("150"),
        daily_limit=Decimal("100"),
        monthly_limit=Decimal("1000"),
        weekly_spent=Decimal("150"),
        weekly_limit=Decimal("150"),
    )
    candidates = build_alert_candidates(status, Decimal("80"), 1, _config())
    assert _types(candidates) == {AlertType.LIMIT_EXCEEDED}
    assert candidates[0].details["period"] == "weekly"


def test_low_balance_and_burst_of_transactions():
    candidates = build_alert_candidates(_status("5", "5"), Decimal("3.50"), 6, _config())
    assert _types(candidates) == {AlertType.BALANCE_LOW, AlertType.SUSPICIOUS_ACTIVITY}


def test_missing_wallet_does_not_raise_low_balance():
    candidates = build_alert_candidates(_status(), None, 0, _config())
    assert candidates == []


# ---------------------------------------------------------------------------
# AlertService
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_mark_as_read_is_one_way(db):
    parent_id = uuid4()
    first_read = datetime(2026, 1, 5, 12, 0)
    alert = Alert(id=uuid4(), parent_user_id=parent_id, is_read=True, read_at=first_read)
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = alert
    db.execute.return_value = mock_result

    result = await AlertService.mark_alert_as_read(db, alert.id, parent_id)

    assert result.is_read is True
    assert result.read_at == first_read
    assert not db.commit.called


@pytest.mark.asyncio
async def test_mark_as_read_sets_timestamp(db):
    parent_id = uuid4()
    alert = Alert(id=uuid4(), parent_user_id=parent_id, is_read=False)
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = alert
    db.execute.return_value = mock_result

    result = await AlertService.mark_alert_as_read(db, alert.id, parent_id)

    assert result.is_read is True
    assert result.read_at is not None
    assert db.commit.called


@pytest.mark.asyncio
async def test_mark_as_read_unknown_alert_returns_none(db):
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = None
    db.execute.return_value = mock_result

    assert await AlertService.mark_alert_as_read(db, uuid4(), uuid4()) is None


@pytest.mark.asyncio
async def test_high_severity_alert_is_emailed(db, school_id):
    data = AlertCreate(
        parent_user_id=uuid4(),
        student_id=uuid4(),
        school_id=school_id,
        type=AlertType.LIMIT_EXCEEDED,
        severity=AlertSeverity.HIGH,
        title="Spending limit reached",
        message="Your child has reached the daily spending limit",
    )
    with patch("app.services.alert_service.AlertService._deliver", new_callable=AsyncMock) as mock_deliver:
        await AlertService.create_alert(db, data)
        mock_deliver.assert_awaited_once()

        mock_deliver.reset_mock()
        await AlertService.create_alert(db, data.model_copy(update={"severity": AlertSeverity.MEDIUM}))
        assert not mock_deliver.called


@pytest.mark.asyncio
async def test_create_alert_stores_unread_alert_and_returns_its_id(db, school_id):
    alert_id = uuid4()
    db.refresh.side_effect = lambda obj: setattr(obj, "id", alert_id)
    data = AlertCreate(
        parent_user_id=uuid4(),
        student_id=uuid4(),
        school_id=school_id,
        type=AlertType.HIGH_SPENDING,
        severity=AlertSeverity.MEDIUM,
        title="High spending today",
        message="Your child has spent $60.00 today",
        details={"daily_total": "60.00"},
    )

    with patch("app.services.alert_service.AlertService._deliver", new_callable=AsyncMock):
        created_id = await AlertService.create_alert(db, data)

    assert created_id == alert_id
    stored = db.add.call_args.args[0]
    assert isinstance(stored, Alert)
    assert stored.is_read is False
    assert stored.parent_user_id == data.parent_user_id
    assert stored.school_id == school_id
    assert stored.details == {"daily_total": "60.00"}
    db.commit.assert_awaited_once()


def _criteria(stmt):
    """Column name -> compared value for each term of the WHERE clause"""
    criteria = {}
    for clause in stmt.whereclause.clauses:
        right = clause.right
        if isinstance(right, BindParameter):
            criteria[clause.left.key] = right.value
        else:
            criteria[clause.left.key] = str(right.compile(dialect=postgresql.dialect()))
    return criteria


@pytest.mark.asyncio
async def test_unread_alerts_are_scoped_and_newest_first(db, school_id):
    parent_id = uuid4()
    rows = [Alert(id=uuid4(), is_read=False), Alert(id=uuid4(), is_read=False)]
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    db.execute.return_value = result

    alerts = await AlertService.get_unread_alerts(db, parent_id, school_id)

    assert alerts == rows
    stmt = db.execute.await_args.args[0]
    criteria = _criteria(stmt)
    assert criteria["parent_user_id"] == parent_id
    assert criteria["school_id"] == school_id
    assert criteria["is_read"] in (False, "false")
    sql = str(stmt.compile(dialect=postgresql.dialect()))
    assert "ORDER BY alerts.created_at DESC, alerts.id DESC" in sql


@pytest.mark.asyncio
async def test_evaluate_skips_students_without_parents(db, policy, school_id):
    mock_result = MagicMock()
    mock_result.scalars.return_value.all.return_value = []
    db.execute.return_value = mock_result

    created = await AlertService.evaluate_alerts_for_transaction(db, uuid4(), school_id, policy)

    assert created == []
    assert not db.add.called


@pytest.mark.asyncio
async def test_evaluate_creates_each_alert_type_once_per_day(db, policy, school_id):
    student_id = uuid4()
    parent_id = uuid4()
    parents = MagicMock()
    parents.scalars.return_value.all.return_value = [parent_id]
    db.execute.return_value = parents
    # balance, recent count, then one dedupe count per candidate
    db.scalar.side_effect = [Decimal("80"), 1, 0, 1]

    with patch(
        "app.services.alert_service.AlertService.get_or_create_alert_config",
        new_callable=AsyncMock,
    ) as mock_config:
        mock_config.return_value = _config()
        with patch(
            "app.services.alert_service.SpendingLimitService.get_spending_status",
            new_callable=AsyncMock,
        ) as mock_status:
            # Over the daily threshold and at the daily limit: two candidates
            mock_status.return_value = _status("100", "100")
            with patch(
                "app.services.alert_service.AlertService.create_alert",
                new_callable=AsyncMock,
            ) as mock_create:
                mock_create.return_value = uuid4()
                created = await AlertService.evaluate_alerts_for_transaction(
                    db, student_id, school_id, policy
                )

    assert len(created) == 1
    alert_in = mock_create.await_args.args[1]
    assert alert_in.type == AlertType.HIGH_SPENDING
    assert alert_in.parent_user_id == parent_id


@pytest.mark.asyncio
async def test_evaluate_respects_notify_parent(db, policy, school_id):
    parents = MagicMock()
    parents.scalars.return_value.all.return_value = [uuid4()]
    db.execute.return_value = parents

    with patch(
        "app.services.alert_service.AlertService.get_or_create_alert_config",
        new_callable=AsyncMock,
    ) as mock_config:
        mock_config.return_value = _config(notify_parent=False)
        created = await AlertService.evaluate_alerts_for_transaction(db, uuid4(), school_id, policy)

    assert created == []
    assert not db.scalar.called
