from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from worktime.core.errors import ConflictingState, InvalidInput, NotFound
from worktime.db.workday_repository import WorkdayRepository
from worktime.models.workday import WorkdayAggregate
from worktime.services.locks import UserLocks, user_locks
from worktime.utils.dates import day_of, utcnow
from worktime.utils.ids import parse_object_id, parse_optional_id


log = logging.getLogger("uvicorn.error")


async def add_manual_workday(
    db: AsyncIOMotorDatabase,
    user: dict,
    *,
    day: date,
    hours_worked: float = 0.0,
    additional_worked: float = 0.0,
    real_time_day_worked: str = "",
    absence_type: Optional[str] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    locks: Optional[UserLocks] = None,
) -> WorkdayAggregate:
    """Record a day by hand. A day is either timed or entered manually, never both."""
    if hours_worked is None or hours_worked < 0 or (additional_worked or 0) < 0:
        raise InvalidInput("Hours cannot be negative")
    user_id = parse_object_id(user["id"], "user id")
    company_id = parse_optional_id(user.get("company_id"), "company id")
    repo = WorkdayRepository(db)
    target = day_of(day)
    now = now or utcnow()
    async with (locks or user_locks).for_user(user_id):
        if await repo.get(user_id, target) is not None:
            raise ConflictingState("A workday for this date already exists")
        aggregate = WorkdayAggregate(
            user_id=user_id,
            company_id=company_id,
            date=target,
            entry_mode="manual",
            hours_worked=float(hours_worked),
            additional_worked=float(additional_worked or 0.0),
            manual_time_ranges=(real_time_day_worked or "").strip(),
            absence_type=absence_type,
            notes=notes,
        )
        await repo.save(aggregate, now)
    log.info("Manual workday %s recorded for user %s", target.date().isoformat(), user_id)
    return aggregate


async def list_workdays(
    db: AsyncIOMotorDatabase,
    user: dict,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[WorkdayAggregate]:
    user_id = parse_object_id(user["id"], "user id")
    if start and end and start > end:
        raise InvalidInput("from must not be after to")
    return await WorkdayRepository(db).list_for_user(
        user_id,
        day_of(start) if start else None,
        day_of(end) if end else None,
    )


async def delete_workday(
    db: AsyncIOMotorDatabase,
    user: dict,
    workday_id,
    *,
    locks: Optional[UserLocks] = None,
) -> None:
    user_id = parse_object_id(user["id"], "user id")
    workday_oid = parse_object_id(workday_id, "workday id")
    repo = WorkdayRepository(db)
    async with (locks or user_locks).for_user(user_id):
        aggregate = await repo.get_by_id(workday_oid)
        if aggregate is None or aggregate.user_id != user_id:
            raise NotFound("Workday not found")
        if aggregate.active_timer is not None:
            raise ConflictingState("Stop the running timer before deleting this workday")
        if not await repo.delete(aggregate):
            raise ConflictingState("Workday was modified concurrently, please retry")
    log.info("Workday %s deleted by user %s", workday_oid, user_id)
