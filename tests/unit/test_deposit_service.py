"""Unit tests for DepositService: validation and lifecycle."""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

from app.core.exceptions import InvalidStateTransition, NotFoundError
from app.models.deposit import Deposit, PaymentMethod
from app.models.enums import DepositStatus, TransactionType
from app.models.wallet import Transaction, WalletProfile
from app.schemas.deposit import DepositRequest
from app.services.deposit_service import DepositService


def _request(school_id, amount="50", payment_method_id=None):
    return DepositRequest(
        parent_user_id=uuid4(),
        student_id=uuid4(),
        school_id=school_id,
        amount=Decimal(amount),
        payment_method_id=payment_method_id,
    )


def _pending(school_id, amount="50"):
    return Deposit(
        id=uuid4(),
        parent_user_id=uuid4(),
        student_id=uuid4(),
        school_id=school_id,
        amount=Decimal(amount),
        status=DepositStatus.PENDING,
    )


# ---------------------------------------------------------------------------
# validate_deposit
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_zero_amount_is_rejected_before_any_query(db, policy, school_id):
    result = await DepositService.validate_deposit(db, _request(school_id, "0"), policy)

    assert result.valid is False
    assert "greater than zero" in result.reason
    assert not db.scalar.called
    assert not db.execute.called


@pytest.mark.asyncio
async def test_amount_over_maximum_is_rejected(db, policy, school_id):
    result = await DepositService.validate_deposit(db, _request(school_id, "15000"), policy)

    assert result.valid is False
    assert "10000" in result.reason


@pytest.mark.asyncio
async def test_amount_a_fraction_of_a_cent_over_maximum_is_rejected(db, policy, school_id):
    result = await DepositService.validate_deposit(db, _request(school_id, "10000.004"), policy)

    assert result.valid is False
    assert not db.add.called
    assert not db.scalar.called


@pytest.mark.asyncio
async def test_valid_deposit_with_active_relationship(db, policy, school_id):
    with patch(
        "app.services.deposit_service.DepositService.has_active_relationship",
        new_callable=AsyncMock,
    ) as mock_link:
        mock_link.return_value = True
        result = await DepositService.validate_deposit(db, _request(school_id, "10000"), policy)

    assert result.valid is True
    assert result.reason is None


@pytest.mark.asyncio
async def test_deposit_without_relationship_is_rejected(db, policy, school_id):
    db.scalar.return_value = None

    result = await DepositService.validate_deposit(db, _request(school_id), policy)

    assert result.valid is False
    assert result.reason == "No active parent-student relationship"


@pytest.mark.asyncio
async def test_unknown_payment_method_is_rejected(db, policy, school_id):
    with patch(
        "app.services.deposit_service.DepositService.has_active_relationship",
        new_callable=AsyncMock,
    ) as mock_link:
        mock_link.return_value = True
        with patch(
            "app.services.deposit_service.DepositService._get_payment_method",
            new_callable=AsyncMock,
        ) as mock_method:
            mock_method.return_value = None
            result = await DepositService.validate_deposit(
                db, _request(school_id, payment_method_id=uuid4()), policy
            )

    assert result.valid is False
    assert result.reason == "Payment method not found"


@pytest.mark.asyncio
async def test_create_deposit_does_not_persist_invalid_request(db, policy, school_id):
    deposit, validation = await DepositService.create_deposit(db, _request(school_id, "-1"), policy)

    assert deposit is None
    assert validation.valid is False
    assert not db.add.called
    assert not db.commit.called


@pytest.mark.asyncio
async def test_create_deposit_stores_pending_row(db, policy, school_id):
    method_id = uuid4()
    with patch(
        "app.services.deposit_service.DepositService.has_active_relationship",
        new_callable=AsyncMock,
    ) as mock_link:
        mock_link.return_value = True
        with patch(
            "app.services.deposit_service.DepositService._get_payment_method",
            new_callable=AsyncMock,
        ) as mock_method:
            mock_method.return_value = PaymentMethod(id=method_id)
            deposit, validation = await DepositService.create_deposit(
                db, _request(school_id, "25.505", payment_method_id=method_id), policy
            )

    assert validation.valid is True
    assert deposit.status == DepositStatus.PENDING
    assert deposit.amount == Decimal("25.51")
    assert deposit.deposited_at is not None
    db.add.assert_called_once_with(deposit)
    assert db.commit.called


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_complete_deposit_credits_wallet_and_writes_ledger(db, school_id):
    deposit = _pending(school_id, "50")
    wallet = WalletProfile(student_id=deposit.student_id, school_id=school_id, balance=Decimal("20.00"))
    wallet_result = MagicMock()
    wallet_result.scalar_one_or_none.return_value = wallet
    db.execute.return_value = wallet_result

    with patch(
        "app.services.deposit_service.DepositService.get_deposit",
        new_callable=AsyncMock,
    ) as mock_get:
        mock_get.return_value = deposit
        result = await DepositService.complete_deposit(db, deposit.id, school_id)

    assert result.status == DepositStatus.COMPLETED
    assert result.completed_at is not None
    assert wallet.balance == Decimal("70.00")
    ledger = [c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], Transaction)]
    assert len(ledger) == 1
    assert ledger[0].type == TransactionType.DEPOSIT
    assert ledger[0].amount == Decimal("50")
    assert db.commit.await_count == 1


@pytest.mark.asyncio
async def test_complete_deposit_creates_missing_wallet(db, school_id):
    deposit = _pending(school_id, "30")
    wallet_result = MagicMock()
    wallet_result.scalar_one_or_none.return_value = None
    db.execute.return_value = wallet_result

    with patch(
        "app.services.deposit_service.DepositService.get_deposit",
        new_callable=AsyncMock,
    ) as mock_get:
        mock_get.return_value = deposit
        await DepositService.complete_deposit(db, deposit.id, school_id)

    wallets = [c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], WalletProfile)]
    assert len(wallets) == 1
    assert wallets[0].balance == Decimal("30.00")


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [DepositStatus.COMPLETED, DepositStatus.FAILED, DepositStatus.CANCELLED])
async def test_terminal_deposits_cannot_change(db, school_id, status):
    deposit = _pending(school_id)
    deposit.status = status

    with patch(
        "app.services.deposit_service.DepositService.get_deposit",
        new_callable=AsyncMock,
    ) as mock_get:
        mock_get.return_value = deposit
        with pytest.raises(InvalidStateTransition):
            await DepositService.complete_deposit(db, deposit.id, school_id)
        with pytest.raises(InvalidStateTransition):
            await DepositService.fail_deposit(db, deposit.id, school_id, "card declined")

    assert not db.commit.called


@pytest.mark.asyncio
async def test_missing_deposit_is_not_found(db, school_id):
    with patch(
        "app.services.deposit_service.DepositService.get_deposit",
        new_callable=AsyncMock,
    ) as mock_get:
        mock_get.return_value = None
        with pytest.raises(NotFoundError):
            await DepositService.complete_deposit(db, uuid4(), school_id)


@pytest.mark.asyncio
async def test_fail_deposit_records_reason(db, school_id):
    deposit = _pending(school_id)
    with patch(
        "app.services.deposit_service.DepositService.get_deposit",
        new_callable=AsyncMock,
    ) as mock_get:
        mock_get.return_value = deposit
        result = await DepositService.fail_deposit(db, deposit.id, school_id, "card declined")

    assert result.status == DepositStatus.FAILED
    assert result.failure_reason == "card declined"
    assert not db.add.called


@pytest.mark.asyncio
async def test_parent_cannot_cancel_someone_elses_deposit(db, school_id):
    deposit = _pending(school_id)
    with patch(
        "app.services.deposit_service.DepositService.get_deposit",
        new_callable=AsyncMock,
    ) as mock_get:
        mock_get.return_value = deposit
        with pytest.raises(NotFoundError):
            await DepositService.cancel_deposit(db, deposit.id, school_id, uuid4())

        result = await DepositService.cancel_deposit(db, deposit.id, school_id, deposit.parent_user_id)

    assert result.status == DepositStatus.CANCELLED
