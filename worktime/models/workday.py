from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from zoneinfo import ZoneInfo

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from worktime.core.errors import ConflictingState, NotFound
from worktime.utils.dates import time_range


def _seconds(start: datetime, end: datetime) -> float:
    return max(0.0, (end - start).total_seconds())


class ClosedSession(BaseModel):
    """A finalized work interval in a workday's ledger.

    ``break_time`` and ``overtime_time`` are seconds spent inside the interval.
    Worked time is the elapsed time minus both, so overtime lands only in
    ``additional_worked`` and break time is never paid as plain hours.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: ObjectId = Field(default_factory=ObjectId)
    start_time: datetime
    end_time: datetime
    is_break: bool = False
    break_time: float = 0.0
    is_overtime: bool = False
    overtime_time: float = 0.0
    work_description: str = ""
    task_id: Optional[ObjectId] = None
    qr_code_id: Optional[ObjectId] = None
    source: Literal["timer", "qr", "qr_legacy"] = "timer"

    @property
    def elapsed_seconds(self) -> float:
        return _seconds(self.start_time, self.end_time)

    @property
    def worked_seconds(self) -> float:
        if self.is_break:
            return 0.0
        return max(0.0, self.elapsed_seconds - self.break_time - self.overtime_time)

    @property
    def task_seconds(self) -> float:
        """Time spent on this session's label, overtime included."""
        if self.is_break:
            return 0.0
        return max(0.0, self.elapsed_seconds - self.break_time)

    def display_range(self, tz: ZoneInfo) -> str:
        return time_range(self.start_time, self.end_time, tz)


class ActiveTimer(BaseModel):
    """The single open interval of a user.

    Break and overtime use the same accounting: ``*_start_time`` marks the
    currently open span, ``total_*_time`` holds closed spans in seconds.
    Overtime does not accrue while on a break; the flag stays set and accrual
    resumes when the break ends.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    start_time: datetime
    is_break: bool = False
    break_start_time: Optional[datetime] = None
    total_break_time: float = 0.0
    is_overtime: bool = False
    overtime_start_time: Optional[datetime] = None
    total_overtime_time: float = 0.0
    work_description: str = ""
    task_id: Optional[ObjectId] = None
    qr_code_id: Optional[ObjectId] = None

    @classmethod
    def open(
        cls,
        now: datetime,
        *,
        work_description: str = "",
        task_id: Optional[ObjectId] = None,
        is_overtime: bool = False,
        is_break: bool = False,
        qr_code_id: Optional[ObjectId] = None,
    ) -> "ActiveTimer":
        return cls(
            start_time=now,
            is_break=is_break,
            break_start_time=now if is_break else None,
            is_overtime=is_overtime,
            overtime_start_time=now if (is_overtime and not is_break) else None,
            work_description=work_description or "",
            task_id=task_id,
            qr_code_id=qr_code_id,
        )

    def _close_break(self, now: datetime) -> None:
        if self.break_start_time is not None:
            self.total_break_time += _seconds(self.break_start_time, now)
            self.break_start_time = None

    def _close_overtime(self, now: datetime) -> None:
        if self.overtime_start_time is not None:
            self.total_overtime_time += _seconds(self.overtime_start_time, now)
            self.overtime_start_time = None

    def toggle_break(self, now: datetime) -> bool:
        """Flip the break flag and return the new value."""
        if self.is_break:
            self._close_break(now)
            self.is_break = False
            if self.is_overtime:
                self.overtime_start_time = now
        else:
            self._close_overtime(now)
            self.is_break = True
            self.break_start_time = now
        return self.is_break

    def set_overtime(self, on: bool, now: datetime) -> None:
        if on == self.is_overtime:
            return
        if on:
            self.is_overtime = True
            self.overtime_start_time = None if self.is_break else now
        else:
            self._close_overtime(now)
            self.is_overtime = False

    def break_seconds(self, now: datetime) -> float:
        live = _seconds(self.break_start_time, now) if self.break_start_time else 0.0
        return self.total_break_time + live

    def overtime_seconds(self, now: datetime) -> float:
        live = _seconds(self.overtime_start_time, now) if self.overtime_start_time else 0.0
        return self.total_overtime_time + live

    def elapsed_seconds(self, now: datetime) -> float:
        return _seconds(self.start_time, now)

    def finalize(self, now: datetime) -> ClosedSession:
        """Fold the open break/overtime spans and turn the segment into a session."""
        self._close_break(now)
        self._close_overtime(now)
        elapsed = _seconds(self.start_time, now)
        break_time = min(self.total_break_time, elapsed)
        overtime_time = min(self.total_overtime_time, elapsed - break_time)
        return ClosedSession(
            start_time=self.start_time,
            end_time=max(now, self.start_time),
            is_break=elapsed > 0 and break_time >= elapsed,
            break_time=break_time,
            is_overtime=overtime_time > 0,
            overtime_time=overtime_time,
            work_description=self.work_description,
            task_id=self.task_id,
            qr_code_id=self.qr_code_id,
            source="qr" if self.qr_code_id else "timer",
        )


class WorkdayAggregate(BaseModel):
    """One user's calendar day: totals, the session ledger and at most one open timer."""

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    user_id: ObjectId
    company_id: Optional[ObjectId] = None
    date: datetime
    entry_mode: Literal["timer", "manual"] = "timer"
    hours_worked: float = 0.0
    additional_worked: float = 0.0
    manual_time_ranges: str = ""
    absence_type: Optional[str] = None
    notes: Optional[str] = None
    sessions: list[ClosedSession] = Field(default_factory=list)
    active_timer: Optional[ActiveTimer] = None
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: dict) -> "WorkdayAggregate":
        return cls.model_validate(doc)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)

    @property
    def is_manual(self) -> bool:
        """Entered by hand (hours or an absence); such a day never takes a timer."""
        return self.entry_mode == "manual"

    def recompute_totals(self) -> None:
        if self.entry_mode != "timer":
            return
        self.hours_worked = sum(s.worked_seconds for s in self.sessions) / 3600.0
        self.additional_worked = sum(s.overtime_time for s in self.sessions) / 3600.0

    def real_time_day_worked(self, tz: ZoneInfo) -> str:
        if self.entry_mode == "manual":
            return self.manual_time_ranges or ""
        return ", ".join(s.display_range(tz) for s in self.sessions if not s.is_break)

    # ---------------------- Timer transitions ----------------------

    def require_timer(self) -> ActiveTimer:
        if self.active_timer is None:
            raise ConflictingState("No active timer")
        return self.active_timer

    def start_timer(self, now: datetime, **kwargs) -> ActiveTimer:
        if self.active_timer is not None:
            raise ConflictingState("Timer is already running")
        if self.is_manual:
            raise ConflictingState("Hours for this day were entered manually")
        self.active_timer = ActiveTimer.open(now, **kwargs)
        return self.active_timer

    def append_session(self, session: ClosedSession) -> None:
        self.sessions.append(session)
        self.recompute_totals()

    def stop_timer(self, now: datetime) -> ClosedSession:
        timer = self.require_timer()
        session = timer.finalize(now)
        self.append_session(session)
        self.active_timer = None
        return session

    def split_timer(
        self,
        now: datetime,
        *,
        work_description: str = "",
        task_id: Optional[ObjectId] = None,
        is_overtime: Optional[bool] = None,
    ) -> ClosedSession:
        timer = self.require_timer()
        on_break = timer.is_break
        overtime = timer.is_overtime if is_overtime is None else bool(is_overtime)
        qr_code_id = timer.qr_code_id
        session = timer.finalize(now)
        self.append_session(session)
        self.active_timer = ActiveTimer.open(
            now,
            work_description=work_description,
            task_id=task_id,
            is_overtime=overtime,
            is_break=on_break,
            qr_code_id=qr_code_id,
        )
        return session

    def remove_session(self, session_id: ObjectId) -> ClosedSession:
        for idx, s in enumerate(self.sessions):
            if s.id == session_id:
                removed = self.sessions.pop(idx)
                self.recompute_totals()
                return removed
        raise NotFound("Session not found")
