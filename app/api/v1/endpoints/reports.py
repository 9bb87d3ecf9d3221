from datetime import datetime, timedelta
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.models.user import User
from app.schemas.report import ParentReport, SchoolReport, TransactionReport
from app.schemas.responses import SuccessResponse
from app.services.reporting_service import ReportingService
from app.utils.time import get_utc_now, to_naive_utc

router = APIRouter()


@router.get("/school", response_model=SuccessResponse[SchoolReport])
async def get_school_report(
    days: int = Query(30, ge=1, le=366),
    current_user: User = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    report = await ReportingService.get_school_report(db, current_user.school_id, window_days=days)
    return SuccessResponse(data=report)


@router.get("/students/{student_id}", response_model=SuccessResponse[TransactionReport])
async def get_student_report(
    student_id: UUID,
    start: Optional[datetime] = Query(None, description="Defaults to 30 days before end"),
    end: Optional[datetime] = Query(None, description="Inclusive; defaults to now"),
    current_user: User = Depends(deps.get_current_user),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Ledger summary for one student between two instants.
    """
    await deps.ensure_can_view_student(db, current_user, student_id)
    end = to_naive_utc(end) if end else get_utc_now()
    start = to_naive_utc(start) if start else end - timedelta(days=30)
    if start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start must not be after end")
    report = await ReportingService.get_student_transaction_report(
        db, student_id, current_user.school_id, start, end
    )
    return SuccessResponse(data=report)


@router.get("/parent", response_model=SuccessResponse[ParentReport])
async def get_parent_report(
    days: int = Query(30, ge=1, le=366),
    current_user: User = Depends(deps.require_parent),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    report = await ReportingService.get_parent_report(
        db, current_user.id, current_user.school_id, window_days=days
    )
    return SuccessResponse(data=report)


@router.get("/operating-units/{operating_unit_id}", response_model=SuccessResponse[TransactionReport])
async def get_operating_unit_report(
    operating_unit_id: UUID,
    days: int = Query(30, ge=1, le=366),
    current_user: User = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    report = await ReportingService.get_operating_unit_report(
        db, operating_unit_id, current_user.school_id, window_days=days
    )
    return SuccessResponse(data=report)
