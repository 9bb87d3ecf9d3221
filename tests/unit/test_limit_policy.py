"""Unit tests for the pure spending-limit and deposit rules."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from app.services.limit_policy import (
    build_spending_status,
    day_window,
    evaluate_purchase,
    is_restricted,
    month_window,
    parse_amount,
    percentage_of,
    to_money,
    validate_deposit_amount,
    week_window,
)

MEXICO_CITY = ZoneInfo("America/Mexico_City")


# ---------------------------------------------------------------------------
# evaluate_purchase
# ---------------------------------------------------------------------------

def test_purchase_that_would_pass_daily_limit_is_rejected():
    decision = evaluate_purchase(
        Decimal("15"),
        daily_spent=Decimal("190"),
        monthly_spent=Decimal("190"),
        daily_limit=Decimal("200"),
        monthly_limit=Decimal("1000"),
    )
    assert decision.allowed is False
    assert "Daily" in decision.reason


def test_purchase_that_fits_is_allowed():
    decision = evaluate_purchase(
        Decimal("5"),
        daily_spent=Decimal("190"),
        monthly_spent=Decimal("190"),
        daily_limit=Decimal("200"),
        monthly_limit=Decimal("1000"),
    )
    assert decision.allowed is True
    assert decision.reason is None


def test_purchase_reaching_limit_exactly_is_allowed():
    decision = evaluate_purchase(
        Decimal("10"),
        daily_spent=Decimal("190"),
        monthly_spent=Decimal("190"),
        daily_limit=Decimal("200"),
        monthly_limit=Decimal("1000"),
    )
    assert decision.allowed is True


def test_amount_alone_over_limit_is_rejected():
    decision = evaluate_purchase(
        Decimal("250"),
        daily_spent=Decimal("0"),
        monthly_spent=Decimal("0"),
        daily_limit=Decimal("200"),
        monthly_limit=Decimal("1000"),
    )
    assert decision.allowed is False


def test_monthly_limit_is_checked_after_daily():
    decision = evaluate_purchase(
        Decimal("20"),
        daily_spent=Decimal("0"),
        monthly_spent=Decimal("990"),
        daily_limit=Decimal("200"),
        monthly_limit=Decimal("1000"),
    )
    assert decision.allowed is False
    assert "Monthly" in decision.reason


def test_sub_cent_amount_is_not_rounded_into_the_limit():
    decision = evaluate_purchase(
        Decimal("10.004"),
        daily_spent=Decimal("190"),
        monthly_spent=Decimal("190"),
        daily_limit=Decimal("200"),
        monthly_limit=Decimal("1000"),
    )
    assert decision.allowed is False
    assert "two decimal places" in decision.reason


def test_weekly_limit_applies_when_set():
    args = dict(
        daily_spent=Decimal("0"),
        monthly_spent=Decimal("95"),
        daily_limit=Decimal("200"),
        monthly_limit=Decimal("1000"),
        weekly_spent=Decimal("95"),
    )
    assert evaluate_purchase(Decimal("10"), **args).allowed is True
    decision = evaluate_purchase(Decimal("10"), weekly_limit=Decimal("100"), **args)
    assert decision.allowed is False
    assert "Weekly" in decision.reason


def test_restricted_product_is_refused_before_limits():
    product_id = uuid4()
    decision = evaluate_purchase(
        Decimal("1"),
        daily_spent=Decimal("0"),
        monthly_spent=Decimal("0"),
        daily_limit=Decimal("200"),
        monthly_limit=Decimal("1000"),
        product_id=product_id,
        restricted_products=[str(product_id)],
    )
    assert decision.allowed is False
    assert "restricted" in decision.reason


def test_category_restriction_ignores_case():
    assert is_restricted(None, " Soda ", restricted_categories=["soda"]) is True
    assert is_restricted(uuid4(), "snacks", restricted_categories=["soda"]) is False
    assert is_restricted(None, None, restricted_categories=["soda"]) is False


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), "nan", "inf", "abc", None, True])
def test_invalid_amounts_fail_closed(amount):
    decision = evaluate_purchase(
        amount,
        daily_spent=Decimal("0"),
        monthly_spent=Decimal("0"),
        daily_limit=Decimal("200"),
        monthly_limit=Decimal("1000"),
    )
    assert decision.allowed is False
    assert decision.reason


# ---------------------------------------------------------------------------
# to_money / percentage_of
# ---------------------------------------------------------------------------

def test_to_money_keeps_exact_cents():
    assert to_money("10.5") == Decimal("10.50")
    assert to_money(3) == Decimal("3.00")
    assert to_money(0.1) == Decimal("0.10")
    assert to_money("10.000") == Decimal("10.00")


def test_to_money_never_rounds_sub_cent_amounts():
    assert to_money("10.005") is None
    assert to_money(Decimal("10000.004")) is None


def test_parse_amount_explains_sub_cent_amounts():
    amount, reason = parse_amount("10.004")
    assert amount is None
    assert "two decimal places" in reason


def test_to_money_rejects_non_finite():
    assert to_money(float("nan")) is None
    assert to_money(Decimal("Infinity")) is None
    assert to_money("") is None


def test_percentage_is_clamped_to_hundred():
    assert percentage_of(Decimal("300"), Decimal("200")) == 100.0
    assert percentage_of(Decimal("50"), Decimal("200")) == 25.0
    assert percentage_of(Decimal("0"), Decimal("200")) == 0.0


def test_percentage_of_zero_limit_is_full():
    assert percentage_of(Decimal("0"), Decimal("0")) == 100.0


# ---------------------------------------------------------------------------
# build_spending_status
# ---------------------------------------------------------------------------

def test_status_over_limit_keeps_real_spend_and_clamps_percentage():
    status = build_spending_status(
        uuid4(),
        daily_spent=Decimal("250"),
        monthly_spent=Decimal("250"),
        daily_limit=Decimal("200"),
        monthly_limit=Decimal("1000"),
    )
    assert status.daily_spent == Decimal("250.00")
    assert status.daily_percentage == 100.0
    assert status.remaining_daily == Decimal("0.00")
    assert status.remaining_monthly == Decimal("750.00")
    assert status.can_purchase is False


def test_status_under_limits_can_purchase():
    status = build_spending_status(
        uuid4(),
        daily_spent=Decimal("20"),
        monthly_spent=Decimal("400"),
        daily_limit=Decimal("100"),
        monthly_limit=Decimal("1000"),
    )
    assert status.can_purchase is True
    assert status.daily_percentage == 20.0
    assert status.monthly_percentage == 40.0


def test_status_at_exact_limit_cannot_purchase():
    status = build_spending_status(
        uuid4(),
        daily_spent=Decimal("100"),
        monthly_spent=Decimal("100"),
        daily_limit=Decimal("100"),
        monthly_limit=Decimal("1000"),
    )
    assert status.can_purchase is False


# ---------------------------------------------------------------------------
# Local-time windows
# ---------------------------------------------------------------------------

def test_day_window_follows_school_timezone():
    # 03:00 UTC on the 10th is still the evening of the 9th in Mexico City
    now = datetime(2026, 3, 10, 3, 0, tzinfo=timezone.utc)
    start, end = day_window(now, MEXICO_CITY)
    assert start == datetime(2026, 3, 9, 6, 0)
    assert end == datetime(2026, 3, 10, 6, 0)
    assert start.tzinfo is None


def test_naive_now_is_treated_as_utc():
    aware = day_window(datetime(2026, 3, 10, 3, 0, tzinfo=timezone.utc), MEXICO_CITY)
    naive = day_window(datetime(2026, 3, 10, 3, 0), MEXICO_CITY)
    assert aware == naive


def test_month_window_uses_local_month():
    now = datetime(2026, 3, 1, 3, 0, tzinfo=timezone.utc)
    start, end = month_window(now, MEXICO_CITY)
    assert start == datetime(2026, 2, 1, 6, 0)
    assert end == datetime(2026, 3, 1, 6, 0)


def test_month_window_wraps_december():
    start, end = month_window(datetime(2026, 12, 15, 18, 0, tzinfo=timezone.utc), MEXICO_CITY)
    assert start == datetime(2026, 12, 1, 6, 0)
    assert end == datetime(2027, 1, 1, 6, 0)


def test_windows_default_to_current_time():
    start, end = day_window(None, MEXICO_CITY)
    assert start < end


# ---------------------------------------------------------------------------
# validate_deposit_amount
# ---------------------------------------------------------------------------

CEILING = Decimal("10000")


def test_deposit_zero_is_invalid():
    result = validate_deposit_amount(Decimal("0"), CEILING)
    assert result.valid is False
    assert "greater than zero" in result.reason


def test_deposit_negative_is_invalid():
    assert validate_deposit_amount(Decimal("-20"), CEILING).valid is False


def test_deposit_above_ceiling_is_invalid():
    result = validate_deposit_amount(Decimal("15000"), CEILING)
    assert result.valid is False
    assert "maximum" in result.reason


def test_deposit_at_ceiling_is_valid():
    assert validate_deposit_amount(Decimal("10000"), CEILING).valid is True


def test_deposit_nan_is_invalid():
    assert validate_deposit_amount("NaN", CEILING).valid is False


@pytest.mark.parametrize("amount", [Decimal("10000.001"), Decimal("10000.004"), "10000.009"])
def test_deposit_just_above_ceiling_is_not_rounded_down(amount):
    result = validate_deposit_amount(amount, CEILING)
    assert result.valid is False


def test_deposit_with_sub_cent_precision_is_invalid():
    result = validate_deposit_amount(Decimal("25.125"), CEILING)
    assert result.valid is False
    assert "two decimal places" in result.reason


def test_deposit_just_below_ceiling_is_valid():
    assert validate_deposit_amount(Decimal("9999.99"), CEILING).valid is True


# ---------------------------------------------------------------------------
# Weekly window and status
# ---------------------------------------------------------------------------

def test_week_window_starts_on_local_monday():
    # Wednesday 2026-03-11 18:00 UTC is 12:00 local
    start, end = week_window(datetime(2026, 3, 11, 18, 0, tzinfo=timezone.utc), MEXICO_CITY)
    assert start == datetime(2026, 3, 9, 6, 0)
    assert end == datetime(2026, 3, 16, 6, 0)


def test_status_without_weekly_cap_leaves_weekly_fields_empty():
    status = build_spending_status(
        uuid4(),
        daily_spent=Decimal("20"),
        monthly_spent=Decimal("400"),
        daily_limit=Decimal("100"),
        monthly_limit=Decimal("1000"),
    )
    assert status.weekly_limit is None
    assert status.weekly_percentage is None
    assert status.remaining_weekly is None


def test_status_at_weekly_cap_cannot_purchase():
    status = build_spending_status(
        uuid4(),
        daily_spent=Decimal("20"),
        monthly_spent=Decimal("300"),
        daily_limit=Decimal("100"),
        monthly_limit=Decimal("1000"),
        weekly_spent=Decimal("300"),
        weekly_limit=Decimal("300"),
    )
    assert status.weekly_percentage == 100.0
    assert status.remaining_weekly == Decimal("0.00")
    assert status.can_purchase is False
