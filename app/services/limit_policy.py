"""Spending limit and deposit rules.

Pure functions with no database access. The async services gather the
counters (spend so far, configured limits) and delegate every decision here.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Optional, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo

from app.schemas.deposit import ValidationResult
from app.schemas.limits import PolicyDecision, SpendingStatus

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def parse_amount(value: Any) -> Tuple[Optional[Decimal], Optional[str]]:
    """
    Read a user-supplied amount exactly, without rounding.

    Returns (amount, None) for a finite number expressed in whole cents,
    otherwise (None, reason). Sign is left to the caller.
    """
    if value is None or isinstance(value, bool):
        return None, "Amount is not a valid number"
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
        if not amount.is_finite():
            return None, "Amount is not a valid number"
        cents = amount.quantize(CENT)
    except (InvalidOperation, ValueError):
        return None, "Amount is not a valid number"
    if cents != amount:
        return None, "Amount cannot have more than two decimal places"
    return cents, None


def to_money(value: Any) -> Optional[Decimal]:
    """Two-decimal Decimal for a valid amount, None otherwise. Never rounds."""
    return parse_amount(value)[0]


def percentage_of(spent: Decimal, limit: Decimal) -> float:
    """Share of the limit used, clamped to [0, 100] for display."""
    if limit <= 0:
        return 100.0
    pct = (spent / limit) * HUNDRED
    pct = max(Decimal(0), min(HUNDRED, pct))
    return float(pct.quantize(CENT, rounding=ROUND_HALF_UP))


def is_restricted(
    product_id: Optional[UUID],
    category: Optional[str],
    restricted_products: Iterable[Any] = (),
    restricted_categories: Iterable[str] = (),
) -> bool:
    """True when a parent blocked the product itself or its category."""
    if product_id is not None and str(product_id) in {str(p) for p in restricted_products}:
        return True
    if category:
        blocked = {c.strip().lower() for c in restricted_categories if c}
        return category.strip().lower() in blocked
    return False


def evaluate_purchase(
    amount: Any,
    daily_spent: Decimal,
    monthly_spent: Decimal,
    daily_limit: Decimal,
    monthly_limit: Decimal,
    weekly_spent: Decimal = ZERO,
    weekly_limit: Optional[Decimal] = None,
    product_id: Optional[UUID] = None,
    category: Optional[str] = None,
    restricted_products: Iterable[Any] = (),
    restricted_categories: Iterable[str] = (),
) -> PolicyDecision:
    """
    Decide whether a purchase fits inside every spending window.

    Fails closed: the purchase is allowed only when the amount is a positive
    number of whole cents, the item is not restricted, and no accumulated
    total would go past its limit. A weekly limit of None means no weekly cap.
    """
    money, problem = parse_amount(amount)
    if problem:
        return PolicyDecision(allowed=False, reason=problem)
    if money <= 0:
        return PolicyDecision(allowed=False, reason="Amount must be greater than zero")
    if is_restricted(product_id, category, restricted_products, restricted_categories):
        return PolicyDecision(allowed=False, reason="This item is restricted by a parent")
    if daily_limit <= 0 or monthly_limit <= 0:
        return PolicyDecision(allowed=False, reason="Spending limit is not configured")
    if daily_spent + money > daily_limit:
        return PolicyDecision(
            allowed=False,
            reason=f"Daily limit of {daily_limit} would be exceeded",
        )
    if weekly_limit is not None and weekly_spent + money > weekly_limit:
        return PolicyDecision(
            allowed=False,
            reason=f"Weekly limit of {weekly_limit} would be exceeded",
        )
    if monthly_spent + money > monthly_limit:
        return PolicyDecision(
            allowed=False,
            reason=f"Monthly limit of {monthly_limit} would be exceeded",
        )
    return PolicyDecision(allowed=True)


def build_spending_status(
    student_id: UUID,
    daily_spent: Decimal,
    monthly_spent: Decimal,
    daily_limit: Decimal,
    monthly_limit: Decimal,
    weekly_spent: Decimal = ZERO,
    weekly_limit: Optional[Decimal] = None,
) -> SpendingStatus:
    daily_spent = daily_spent.quantize(CENT, rounding=ROUND_HALF_UP)
    weekly_spent = weekly_spent.quantize(CENT, rounding=ROUND_HALF_UP)
    monthly_spent = monthly_spent.quantize(CENT, rounding=ROUND_HALF_UP)
    weekly_open = weekly_limit is None or weekly_spent < weekly_limit
    return SpendingStatus(
        student_id=student_id,
        daily_spent=daily_spent,
        daily_limit=daily_limit,
        daily_percentage=percentage_of(daily_spent, daily_limit),
        weekly_spent=weekly_spent,
        weekly_limit=weekly_limit,
        weekly_percentage=percentage_of(weekly_spent, weekly_limit) if weekly_limit is not None else None,
        monthly_spent=monthly_spent,
        monthly_limit=monthly_limit,
        monthly_percentage=percentage_of(monthly_spent, monthly_limit),
        remaining_daily=max(ZERO, daily_limit - daily_spent),
        remaining_weekly=max(ZERO, weekly_limit - weekly_spent) if weekly_limit is not None else None,
        remaining_monthly=max(ZERO, monthly_limit - monthly_spent),
        can_purchase=daily_spent < daily_limit and weekly_open and monthly_spent < monthly_limit,
    )


def _localize(now: Optional[datetime], tz: ZoneInfo) -> datetime:
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        # Stored timestamps are naive UTC
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz)


def _as_naive_utc(local: datetime) -> datetime:
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def day_window(now: Optional[datetime], tz: ZoneInfo) -> Tuple[datetime, datetime]:
    """[start, end) of the local calendar day containing `now`, as naive UTC."""
    local = _localize(now, tz)
    start = datetime(local.year, local.month, local.day, tzinfo=tz)
    end_day = start.date() + timedelta(days=1)
    end = datetime(end_day.year, end_day.month, end_day.day, tzinfo=tz)
    return _as_naive_utc(start), _as_naive_utc(end)


def week_window(now: Optional[datetime], tz: ZoneInfo) -> Tuple[datetime, datetime]:
    """[start, end) of the local Monday-to-Sunday week containing `now`, as naive UTC."""
    local = _localize(now, tz)
    monday = local.date() - timedelta(days=local.weekday())
    next_monday = monday + timedelta(days=7)
    start = datetime(monday.year, monday.month, monday.day, tzinfo=tz)
    end = datetime(next_monday.year, next_monday.month, next_monday.day, tzinfo=tz)
    return _as_naive_utc(start), _as_naive_utc(end)


def month_window(now: Optional[datetime], tz: ZoneInfo) -> Tuple[datetime, datetime]:
    """[start, end) of the local calendar month containing `now`, as naive UTC."""
    local = _localize(now, tz)
    start = datetime(local.year, local.month, 1, tzinfo=tz)
    if local.month == 12:
        end = datetime(local.year + 1, 1, 1, tzinfo=tz)
    else:
        end = datetime(local.year, local.month + 1, 1, tzinfo=tz)
    return _as_naive_utc(start), _as_naive_utc(end)


def validate_deposit_amount(amount: Any, ceiling: Decimal) -> ValidationResult:
    """Bounds check for a deposit; the ceiling itself is accepted."""
    money, problem = parse_amount(amount)
    if problem:
        return ValidationResult(valid=False, reason=problem)
    if money <= 0:
        return ValidationResult(valid=False, reason="Amount must be greater than zero")
    if money > ceiling:
        return ValidationResult(valid=False, reason=f"Amount exceeds the maximum deposit of {ceiling}")
    return ValidationResult(valid=True)
