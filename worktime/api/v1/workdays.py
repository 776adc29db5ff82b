from typing import Optional
from datetime import date as _date
from zoneinfo import ZoneInfo
from fastapi import APIRouter, Depends, Path, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from worktime.api.v1.timer import workday_out
from worktime.core.config import settings
from worktime.core.security import get_current_user
from worktime.db.mongo import get_mongo_db
from worktime.schemas.timer_schema import WorkdayOut
from worktime.schemas.workday_schema import ManualWorkdayIn
from worktime.services import workday_service


router = APIRouter(prefix="/workdays", tags=["workdays"])


@router.post("", response_model=WorkdayOut, status_code=status.HTTP_201_CREATED)
async def add_workday(
    payload: ManualWorkdayIn,
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    aggregate = await workday_service.add_manual_workday(
        db,
        current_user,
        day=payload.date,
        hours_worked=payload.hours_worked,
        additional_worked=payload.additional_worked,
        real_time_day_worked=payload.real_time_day_worked,
        absence_type=payload.absence_type,
        notes=payload.notes,
    )
    return workday_out(aggregate, ZoneInfo(settings.DISPLAY_TIMEZONE))


@router.get("", response_model=list[WorkdayOut])
async def list_workdays(
    from_date: Optional[_date] = Query(None, alias="from"),
    to_date: Optional[_date] = Query(None, alias="to"),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    tz = ZoneInfo(settings.DISPLAY_TIMEZONE)
    items = await workday_service.list_workdays(db, current_user, from_date, to_date)
    return [workday_out(a, tz) for a in items]


@router.delete("/{workday_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workday(
    workday_id: str = Path(...),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    await workday_service.delete_workday(db, current_user, workday_id)
    return None
