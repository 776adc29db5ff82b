from __future__ import annotations

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from worktime.core.config import settings
from worktime.core.errors import Forbidden, InvalidInput, NotFound
from worktime.core.rbac import can_view_user_sessions
from worktime.db.workday_repository import WorkdayRepository
from worktime.services import sources
from worktime.utils.dates import local_day, month_bounds, next_day, utcnow
from worktime.utils.ids import parse_object_id


def _range_for(month: Optional[int], year: Optional[int], now: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    if month is None and year is None:
        today = local_day(now, tz)
        return today, next_day(today)
    if month is None or year is None:
        raise InvalidInput("month and year must be given together")
    if not 1 <= int(month) <= 12:
        raise InvalidInput("month must be between 1 and 12")
    if not 1970 <= int(year) <= 9999:
        raise InvalidInput("year is out of range")
    return month_bounds(int(year), int(month))


def _group_key(task_id: Optional[ObjectId], description: str) -> str:
    if task_id is not None:
        return f"task:{task_id}"
    return f"desc:{description.strip().casefold()}"


async def _build_report(
    db: AsyncIOMotorDatabase,
    user_id: ObjectId,
    month: Optional[int],
    year: Optional[int],
    now: datetime,
    tz: ZoneInfo,
) -> dict:
    start, end = _range_for(month, year, now, tz)
    aggregates = await WorkdayRepository(db).list_range(user_id, start, end)

    groups: dict[str, dict] = {}
    dates: set[str] = set()
    for agg in aggregates:
        day = agg.date.date().isoformat()
        for s in agg.sessions:
            if s.is_break:
                continue
            dates.add(day)
            key = _group_key(s.task_id, s.work_description)
            g = groups.get(key)
            if g is None:
                g = groups[key] = {
                    "key": key,
                    "task_id": str(s.task_id) if s.task_id else None,
                    "task_title": None,
                    "work_description": "",
                    "sessions": [],
                    "seconds": 0.0,
                }
            if not g["work_description"] and s.work_description.strip():
                g["work_description"] = s.work_description.strip()
            g["seconds"] += s.task_seconds
            g["sessions"].append({
                "id": str(s.id),
                "workday_id": str(agg.id),
                "date": day,
                "start_time": s.start_time,
                "end_time": s.end_time,
                "time_range": s.display_range(tz),
                "work_description": s.work_description,
                "break_time": s.break_time,
                "overtime_time": s.overtime_time,
                "source": s.source,
            })

    total_seconds = sum(g["seconds"] for g in groups.values())
    grouped: list[dict] = []
    for g in groups.values():
        if g["task_id"]:
            task = await sources.resolve_task(db, ObjectId(g["task_id"]))
            g["task_title"] = task["title"] if task else None
        seconds = g.pop("seconds")
        g["total_minutes"] = round(seconds / 60.0, 2)
        g["total_hours"] = round(seconds / 3600.0, 2)
        g["percentage"] = round(seconds * 100.0 / total_seconds, 1) if total_seconds else 0.0
        grouped.append(g)
    grouped.sort(key=lambda g: g["total_minutes"], reverse=True)

    return {
        "grouped": grouped,
        "total_minutes": round(total_seconds / 60.0, 2),
        "total_hours": round(total_seconds / 3600.0, 2),
        "available_dates": sorted(dates),
    }


async def sessions_for_range(
    db: AsyncIOMotorDatabase,
    user: dict,
    month: Optional[int] = None,
    year: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> dict:
    """Closed sessions of the caller in a month (or today), grouped by task or description."""
    user_id = parse_object_id(user["id"], "user id")
    return await _build_report(db, user_id, month, year, now or utcnow(), tz or ZoneInfo(settings.DISPLAY_TIMEZONE))


async def sessions_for_user(
    db: AsyncIOMotorDatabase,
    viewer: dict,
    target_user_id,
    month: Optional[int] = None,
    year: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> dict:
    target_oid = parse_object_id(target_user_id, "user id")
    target = await sources.get_user(db, target_oid)
    if not target:
        raise NotFound("User not found")
    if not can_view_user_sessions(viewer, target):
        raise Forbidden("You cannot view this user's sessions")
    report = await _build_report(db, target_oid, month, year, now or utcnow(), tz or ZoneInfo(settings.DISPLAY_TIMEZONE))
    report["user"] = {
        "id": target["id"],
        "first_name": target["first_name"],
        "last_name": target["last_name"],
    }
    return report
