"""API tests: deposits and payment methods."""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

from app.core.exceptions import InvalidStateTransition
from app.models.deposit import Deposit, PaymentMethod
from app.models.enums import DepositStatus, PaymentMethodType
from app.schemas.deposit import ValidationResult


def _deposit(parent, student_id, status=DepositStatus.PENDING, amount="50.00"):
    return Deposit(
        id=uuid4(),
        parent_user_id=parent.id,
        student_id=student_id,
        school_id=parent.school_id,
        amount=Decimal(amount),
        status=status,
        created_at=datetime(2026, 3, 2, 15, 0),
    )


@pytest.mark.asyncio
async def test_validate_reports_reason_without_creating(async_client, login_as, parent, db):
    login_as(parent)
    resp = await async_client.post(
        "/deposits/validate", json={"student_id": str(uuid4()), "amount": "15000"}
    )

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["data"]["valid"] is False
    assert "maximum" in body["data"]["reason"]
    assert not db.add.called


@pytest.mark.asyncio
async def test_invalid_deposit_is_a_400_with_reason(async_client, login_as, parent):
    login_as(parent)
    with patch(
        "app.api.v1.endpoints.deposits.DepositService.create_deposit",
        new_callable=AsyncMock,
    ) as mock_create:
        mock_create.return_value = (None, ValidationResult(valid=False, reason="No active parent-student relationship"))
        resp = await async_client.post("/deposits", json={"student_id": str(uuid4()), "amount": "50"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "No active parent-student relationship"


@pytest.mark.asyncio
async def test_create_deposit_uses_token_identity(async_client, login_as, parent):
    login_as(parent)
    student_id = uuid4()
    deposit = _deposit(parent, student_id)
    with patch(
        "app.api.v1.endpoints.deposits.DepositService.create_deposit",
        new_callable=AsyncMock,
    ) as mock_create:
        mock_create.return_value = (deposit, ValidationResult(valid=True))
        resp = await async_client.post("/deposits", json={"student_id": str(student_id), "amount": "50"})

    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["status"] == "PENDING"
    assert resp.json()["data"]["amount"] == 50.0
    request = mock_create.await_args.args[1]
    assert request.parent_user_id == parent.id
    assert request.school_id == parent.school_id


@pytest.mark.asyncio
async def test_completing_a_finished_deposit_is_a_conflict(async_client, login_as, admin):
    login_as(admin)
    with patch(
        "app.api.v1.endpoints.deposits.DepositService.complete_deposit",
        new_callable=AsyncMock,
    ) as mock_complete:
        mock_complete.side_effect = InvalidStateTransition("Deposit is COMPLETED; only PENDING deposits can change")
        resp = await async_client.post(f"/deposits/{uuid4()}/complete")

    assert resp.status_code == 409
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "INVALID_STATE_TRANSITION"


@pytest.mark.asyncio
async def test_parents_cannot_complete_deposits(async_client, login_as, parent):
    login_as(parent)
    resp = await async_client.post(f"/deposits/{uuid4()}/complete")
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_deposit_history(async_client, login_as, parent):
    login_as(parent)
    student_id = uuid4()
    history = [
        _deposit(parent, student_id, DepositStatus.COMPLETED, "20.00"),
        _deposit(parent, student_id, DepositStatus.PENDING, "10.00"),
    ]
    with patch(
        "app.api.v1.endpoints.deposits.DepositService.get_parent_deposit_history",
        new_callable=AsyncMock,
    ) as mock_history:
        mock_history.return_value = history
        resp = await async_client.get("/deposits")

    assert resp.status_code == 200
    assert [d["status"] for d in resp.json()["data"]] == ["COMPLETED", "PENDING"]


@pytest.mark.asyncio
async def test_add_payment_method(async_client, login_as, parent):
    login_as(parent)
    method = PaymentMethod(
        id=uuid4(),
        parent_user_id=parent.id,
        school_id=parent.school_id,
        method_type=PaymentMethodType.CARD,
        label="Visa",
        last_four="4242",
        is_default=True,
        is_active=True,
        created_at=datetime(2026, 3, 2, 15, 0),
    )
    with patch(
        "app.api.v1.endpoints.payment_methods.PaymentMethodService.add_payment_method",
        new_callable=AsyncMock,
    ) as mock_add:
        mock_add.return_value = method
        resp = await async_client.post(
            "/payment-methods", json={"method_type": "card", "label": "Visa", "last_four": "4242"}
        )

    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["is_default"] is True


@pytest.mark.asyncio
async def test_remove_unknown_payment_method(async_client, login_as, parent):
    login_as(parent)
    with patch(
        "app.api.v1.endpoints.payment_methods.PaymentMethodService.deactivate",
        new_callable=AsyncMock,
    ) as mock_deactivate:
        mock_deactivate.return_value = False
        resp = await async_client.delete(f"/payment-methods/{uuid4()}")

    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_validate_does_not_round_amount_under_ceiling(async_client, login_as, parent):
    login_as(parent)
    resp = await async_client.post(
        "/deposits/validate", json={"student_id": str(uuid4()), "amount": "10000.004"}
    )

    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["valid"] is False
