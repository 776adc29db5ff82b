from typing import Optional
from datetime import date as _date, timedelta
from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from worktime.core.errors import InvalidInput
from worktime.core.security import get_current_user
from worktime.db.mongo import get_mongo_db
from worktime.schemas.workday_schema import HolidayOut
from worktime.services import sources
from worktime.utils.holidays import holidays_in_range
from worktime.utils.ids import parse_optional_id


router = APIRouter(prefix="/holidays", tags=["holidays"])


@router.get("", response_model=list[HolidayOut])
async def list_holidays(
    from_date: Optional[_date] = Query(None, alias="from"),
    to_date: Optional[_date] = Query(None, alias="to"),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    """Holidays enabled for the caller's company; defaults to the current year."""
    today = _date.today()
    start = from_date or _date(today.year, 1, 1)
    end = to_date or (start.replace(month=12, day=31) if from_date else _date(today.year, 12, 31))
    if end < start:
        raise InvalidInput("from must not be after to")
    if end - start > timedelta(days=366 * 5):
        raise InvalidInput("Range is limited to five years")
    tenant = await sources.get_tenant_settings(db, parse_optional_id(current_user.get("company_id"), "company id"))
    return holidays_in_range(start, end, tenant)
