from typing import Any, List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.config import WalletPolicy
from app.models.user import User
from app.schemas.alert import AlertConfigResponse, AlertConfigUpdate, AlertResponse
from app.schemas.responses import SuccessResponse
from app.services.alert_service import AlertService

router = APIRouter()


@router.get("", response_model=SuccessResponse[List[AlertResponse]])
async def list_unread_alerts(
    current_user: User = Depends(deps.require_parent),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Unread alerts for the signed-in parent, newest first.
    """
    alerts = await AlertService.get_unread_alerts(db, current_user.id, current_user.school_id)
    return SuccessResponse(data=[AlertResponse.model_validate(a) for a in alerts])


@router.post("/{alert_id}/read", response_model=SuccessResponse[AlertResponse])
async def mark_alert_as_read(
    alert_id: UUID,
    current_user: User = Depends(deps.require_parent),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    alert = await AlertService.mark_alert_as_read(db, alert_id, current_user.id)
    if not alert:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alert not found")
    return SuccessResponse(data=AlertResponse.model_validate(alert), message="Alert marked as read")


@router.get("/config/{student_id}", response_model=SuccessResponse[AlertConfigResponse])
async def get_alert_config(
    student_id: UUID,
    current_user: User = Depends(deps.require_guardian),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    await deps.ensure_can_view_student(db, current_user, student_id)
    config = await AlertService.get_or_create_alert_config(db, student_id, current_user.school_id, policy)
    return SuccessResponse(data=AlertConfigResponse.model_validate(config))


@router.put("/config/{student_id}", response_model=SuccessResponse[AlertConfigResponse])
async def update_alert_config(
    student_id: UUID,
    config_in: AlertConfigUpdate,
    current_user: User = Depends(deps.require_guardian),
    db: AsyncSession = Depends(deps.get_db),
    policy: WalletPolicy = Depends(deps.get_policy),
) -> Any:
    await deps.ensure_can_view_student(db, current_user, student_id)
    config = await AlertService.update_alert_config(
        db, student_id, current_user.school_id, config_in, policy
    )
    return SuccessResponse(data=AlertConfigResponse.model_validate(config), message="Alert settings updated")
