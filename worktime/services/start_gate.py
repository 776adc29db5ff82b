from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from worktime.core.errors import PolicyDenied
from worktime.db.workday_repository import WorkdayRepository
from worktime.services import sources
from worktime.utils.holidays import is_holiday


log = logging.getLogger("uvicorn.error")

REASON_MANUAL_ENTRY = "manual_entry_exists"
REASON_WEEKEND = "weekend"
REASON_HOLIDAY = "holiday"
REASON_LEAVE = "leave"

MESSAGES = {
    REASON_MANUAL_ENTRY: "Cannot start the timer on a day that already has manually entered hours",
    REASON_WEEKEND: "Cannot start the timer on a weekend (your team does not work on weekends)",
    REASON_HOLIDAY: "Cannot start the timer on a holiday: {name}",
    REASON_LEAVE: "Cannot start the timer on a day covered by an approved leave",
}


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    holiday_name: Optional[str] = None

    def raise_if_denied(self) -> None:
        if not self.allowed:
            raise PolicyDenied(self.reason or "denied", self.message or "Timer cannot be started")


def _deny(reason: str, holiday_name: Optional[str] = None) -> GateDecision:
    message = MESSAGES[reason].format(name=holiday_name or "")
    return GateDecision(allowed=False, reason=reason, message=message, holiday_name=holiday_name)


class StartGate:
    """Decides whether a timer may be started on a calendar day. Never writes."""

    def __init__(self, db: AsyncIOMotorDatabase, workdays: Optional[WorkdayRepository] = None) -> None:
        self._db = db
        self._workdays = workdays or WorkdayRepository(db)

    async def can_start(self, user_id: ObjectId, company_id: Optional[ObjectId], day: datetime) -> GateDecision:
        existing = await self._workdays.get(user_id, day)
        if existing and existing.is_manual:
            return self._log(user_id, day, _deny(REASON_MANUAL_ENTRY))

        settings = await sources.get_tenant_settings(self._db, company_id)
        if not settings.get("work_on_weekends", True) and day.weekday() >= 5:
            return self._log(user_id, day, _deny(REASON_WEEKEND))

        holiday = is_holiday(day.date(), settings)
        if holiday:
            return self._log(user_id, day, _deny(REASON_HOLIDAY, holiday["name"]))

        for leave in await sources.get_approved_leave_ranges(self._db, user_id):
            if leave["start_date"] <= day <= leave["end_date"]:
                return self._log(user_id, day, _deny(REASON_LEAVE))

        return GateDecision(allowed=True)

    @staticmethod
    def _log(user_id: ObjectId, day: datetime, decision: GateDecision) -> GateDecision:
        log.info("Timer start denied for user %s on %s: %s", user_id, day.date().isoformat(), decision.reason)
        return decision
