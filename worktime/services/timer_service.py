from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from worktime.core.config import settings
from worktime.core.errors import ConflictingState, NotFound
from worktime.db.workday_repository import WorkdayRepository
from worktime.models.workday import ClosedSession, WorkdayAggregate
from worktime.services import sources
from worktime.services.locks import UserLocks, user_locks
from worktime.services.start_gate import GateDecision, StartGate
from worktime.utils.dates import local_day, utcnow
from worktime.utils.ids import parse_object_id, parse_optional_id


log = logging.getLogger("uvicorn.error")


class TimerService:
    """Start / pause-resume / relabel / split / stop over a user's single open timer.

    Every mutation runs under the user's lock and ends in exactly one
    compare-and-swap save of the aggregate holding the timer, so a session is
    either fully recorded (ledger, totals, display ranges) or not at all.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        *,
        tz: Optional[ZoneInfo] = None,
        locks: Optional[UserLocks] = None,
    ) -> None:
        self._db = db
        self.workdays = WorkdayRepository(db)
        self.gate = StartGate(db, self.workdays)
        self.tz = tz or ZoneInfo(settings.DISPLAY_TIMEZONE)
        self.locks = locks or user_locks

    # ---------------------- Helpers ----------------------

    @staticmethod
    def user_ids(user: dict) -> tuple[ObjectId, Optional[ObjectId]]:
        return parse_object_id(user["id"], "user id"), parse_optional_id(user.get("company_id"), "company id")

    async def _check_task(self, task_id) -> Optional[ObjectId]:
        task_oid = parse_optional_id(task_id, "task id")
        if task_oid is not None and await sources.resolve_task(self._db, task_oid) is None:
            raise NotFound("Task not found")
        return task_oid

    async def _require_active(self, user_id: ObjectId) -> WorkdayAggregate:
        aggregate = await self.workdays.find_active(user_id)
        if aggregate is None:
            raise ConflictingState("No active timer")
        return aggregate

    # ---------------------- Operations ----------------------

    async def can_start(self, user: dict, day: Optional[datetime] = None, *, now: Optional[datetime] = None) -> GateDecision:
        user_id, company_id = self.user_ids(user)
        day = day or local_day(now or utcnow(), self.tz)
        return await self.gate.can_start(user_id, company_id, day)

    async def start(
        self,
        user: dict,
        *,
        work_description: str = "",
        task_id=None,
        is_overtime: bool = False,
        now: Optional[datetime] = None,
    ) -> WorkdayAggregate:
        user_id, _ = self.user_ids(user)
        task_oid = await self._check_task(task_id)
        async with self.locks.for_user(user_id):
            return await self.start_locked(
                user,
                now=now or utcnow(),
                work_description=work_description,
                task_id=task_oid,
                is_overtime=is_overtime,
            )

    async def start_locked(
        self,
        user: dict,
        *,
        now: datetime,
        work_description: str = "",
        task_id: Optional[ObjectId] = None,
        is_overtime: bool = False,
        qr_code_id: Optional[ObjectId] = None,
    ) -> WorkdayAggregate:
        """Start a timer; the caller must hold the user's lock."""
        user_id, company_id = self.user_ids(user)
        day = local_day(now, self.tz)
        await self.ensure_can_start(user_id, company_id, day)
        aggregate = await self.workdays.get_or_new(user_id, company_id, day)
        aggregate.start_timer(
            now,
            work_description=work_description,
            task_id=task_id,
            is_overtime=is_overtime,
            qr_code_id=qr_code_id,
        )
        await self.workdays.save(aggregate, now)
        log.info("Timer started for user %s on %s (qr=%s)", user_id, day.date().isoformat(), qr_code_id)
        return aggregate

    async def ensure_can_start(self, user_id: ObjectId, company_id: Optional[ObjectId], day: datetime) -> None:
        """Gate check plus the global idle check; raises without writing anything."""
        decision = await self.gate.can_start(user_id, company_id, day)
        decision.raise_if_denied()
        if await self.workdays.find_active(user_id) is not None:
            log.info("Timer start rejected for user %s: already running", user_id)
            raise ConflictingState("Timer is already running")

    async def pause_resume(self, user: dict, *, now: Optional[datetime] = None) -> WorkdayAggregate:
        user_id, _ = self.user_ids(user)
        now = now or utcnow()
        async with self.locks.for_user(user_id):
            aggregate = await self._require_active(user_id)
            on_break = aggregate.require_timer().toggle_break(now)
            await self.workdays.save(aggregate, now)
        log.info("Timer %s for user %s", "paused" if on_break else "resumed", user_id)
        return aggregate

    async def update_active_label(
        self,
        user: dict,
        *,
        work_description: Optional[str] = None,
        task_id=None,
        is_overtime: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> WorkdayAggregate:
        """Relabel the running timer. ``task_id=""`` clears the task; ``None`` keeps it."""
        user_id, _ = self.user_ids(user)
        task_oid = await self._check_task(task_id)
        now = now or utcnow()
        async with self.locks.for_user(user_id):
            aggregate = await self._require_active(user_id)
            timer = aggregate.require_timer()
            if work_description is not None:
                timer.work_description = work_description
            if task_id is not None:
                timer.task_id = task_oid
            if is_overtime is not None:
                timer.set_overtime(bool(is_overtime), now)
            await self.workdays.save(aggregate, now)
        return aggregate

    async def split(
        self,
        user: dict,
        *,
        work_description: str = "",
        task_id=None,
        is_overtime: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> tuple[WorkdayAggregate, ClosedSession]:
        user_id, _ = self.user_ids(user)
        task_oid = await self._check_task(task_id)
        now = now or utcnow()
        async with self.locks.for_user(user_id):
            aggregate = await self._require_active(user_id)
            session = aggregate.split_timer(
                now,
                work_description=work_description,
                task_id=task_oid,
                is_overtime=is_overtime,
            )
            await self.workdays.save(aggregate, now)
        log.info("Timer split for user %s at %s", user_id, now.isoformat())
        return aggregate, session

    async def stop(self, user: dict, *, now: Optional[datetime] = None) -> tuple[WorkdayAggregate, ClosedSession]:
        user_id, _ = self.user_ids(user)
        async with self.locks.for_user(user_id):
            aggregate = await self._require_active(user_id)
            return await self.stop_locked(aggregate, now or utcnow())

    async def stop_locked(self, aggregate: WorkdayAggregate, now: datetime) -> tuple[WorkdayAggregate, ClosedSession]:
        """Finalize the timer held by ``aggregate``; the caller must hold the user's lock.

        The timer lives on the aggregate of the day it started, so the session
        is recorded there even when the shift ends after midnight.
        """
        session = aggregate.stop_timer(now)
        await self.workdays.save(aggregate, now)
        log.info(
            "Timer stopped for user %s: %.0fs elapsed, %.0fs break, %.0fs overtime (day %s)",
            aggregate.user_id,
            session.elapsed_seconds,
            session.break_time,
            session.overtime_time,
            aggregate.date.date().isoformat(),
        )
        return aggregate, session

    async def get_active(self, user: dict) -> Optional[WorkdayAggregate]:
        user_id, _ = self.user_ids(user)
        return await self.workdays.find_active(user_id)

    async def delete_session(
        self,
        user: dict,
        workday_id,
        session_id,
        *,
        now: Optional[datetime] = None,
    ) -> WorkdayAggregate:
        user_id, _ = self.user_ids(user)
        workday_oid = parse_object_id(workday_id, "workday id")
        session_oid = parse_object_id(session_id, "session id")
        now = now or utcnow()
        async with self.locks.for_user(user_id):
            aggregate = await self.workdays.get_by_id(workday_oid)
            if aggregate is None or aggregate.user_id != user_id:
                raise NotFound("Workday not found")
            aggregate.remove_session(session_oid)
            await self.workdays.save(aggregate, now)
        log.info("Session %s deleted from workday %s", session_oid, workday_oid)
        return aggregate
