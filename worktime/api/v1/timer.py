from typing import Optional
from datetime import date as _date
from fastapi import APIRouter, Depends, Path, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from worktime.core.security import get_current_user
from worktime.db.mongo import get_mongo_db
from worktime.models.workday import ClosedSession, WorkdayAggregate
from worktime.schemas.report_schema import SessionsReportOut
from worktime.schemas.timer_schema import (
    ActiveTimerOut,
    CanStartOut,
    SessionOut,
    SplitTimerIn,
    StartTimerIn,
    TimerActionOut,
    UpdateTimerIn,
    WorkdayOut,
)
from worktime.services import reporting
from worktime.services.timer_service import TimerService
from worktime.utils.dates import day_of, utcnow


router = APIRouter(prefix="/timer", tags=["timer"])


def get_timer_service(db: AsyncIOMotorDatabase = Depends(get_mongo_db)) -> TimerService:
    return TimerService(db)


def session_out(session: ClosedSession, tz) -> dict:
    return {
        "id": str(session.id),
        "start_time": session.start_time,
        "end_time": session.end_time,
        "time_range": session.display_range(tz),
        "is_break": session.is_break,
        "break_time": session.break_time,
        "is_overtime": session.is_overtime,
        "overtime_time": session.overtime_time,
        "work_description": session.work_description,
        "task_id": str(session.task_id) if session.task_id else None,
        "qr_code_id": str(session.qr_code_id) if session.qr_code_id else None,
        "source": session.source,
    }


def active_timer_out(aggregate: WorkdayAggregate) -> Optional[dict]:
    timer = aggregate.active_timer
    if timer is None:
        return None
    now = utcnow()
    elapsed = timer.elapsed_seconds(now)
    on_break = timer.break_seconds(now)
    overtime = timer.overtime_seconds(now)
    return {
        "workday_id": str(aggregate.id),
        "date": aggregate.date.date().isoformat(),
        "start_time": timer.start_time,
        "is_break": timer.is_break,
        "is_overtime": timer.is_overtime,
        "work_description": timer.work_description,
        "task_id": str(timer.task_id) if timer.task_id else None,
        "qr_code_id": str(timer.qr_code_id) if timer.qr_code_id else None,
        "elapsed_seconds": elapsed,
        "break_seconds": on_break,
        "overtime_seconds": overtime,
        "worked_seconds": max(0.0, elapsed - on_break - overtime),
    }


def workday_out(aggregate: WorkdayAggregate, tz) -> dict:
    return {
        "id": str(aggregate.id),
        "date": aggregate.date.date().isoformat(),
        "entry_mode": aggregate.entry_mode,
        "hours_worked": round(aggregate.hours_worked, 4),
        "additional_worked": round(aggregate.additional_worked, 4),
        "real_time_day_worked": aggregate.real_time_day_worked(tz),
        "absence_type": aggregate.absence_type,
        "notes": aggregate.notes,
        "sessions": [session_out(s, tz) for s in aggregate.sessions],
        "active_timer": active_timer_out(aggregate),
    }


@router.get("/can-start", response_model=CanStartOut)
async def can_start(
    date: Optional[_date] = Query(None, description="Calendar day to check; defaults to today"),
    timers: TimerService = Depends(get_timer_service),
    current_user=Depends(get_current_user),
):
    decision = await timers.can_start(current_user, day_of(date) if date else None)
    return {
        "can_start": decision.allowed,
        "reason": decision.reason,
        "message": decision.message,
        "holiday_name": decision.holiday_name,
    }


@router.post("/start", response_model=TimerActionOut)
async def start_timer(
    payload: StartTimerIn,
    timers: TimerService = Depends(get_timer_service),
    current_user=Depends(get_current_user),
):
    aggregate = await timers.start(
        current_user,
        work_description=payload.work_description,
        task_id=payload.task_id,
        is_overtime=payload.is_overtime,
    )
    return {"message": "Timer started", "workday": workday_out(aggregate, timers.tz)}


@router.post("/pause", response_model=TimerActionOut)
async def pause_resume_timer(
    timers: TimerService = Depends(get_timer_service),
    current_user=Depends(get_current_user),
):
    aggregate = await timers.pause_resume(current_user)
    message = "Timer paused" if aggregate.active_timer.is_break else "Timer resumed"
    return {"message": message, "workday": workday_out(aggregate, timers.tz)}


@router.put("/update", response_model=TimerActionOut)
async def update_timer(
    payload: UpdateTimerIn,
    timers: TimerService = Depends(get_timer_service),
    current_user=Depends(get_current_user),
):
    aggregate = await timers.update_active_label(
        current_user,
        work_description=payload.work_description,
        task_id=payload.task_id,
        is_overtime=payload.is_overtime,
    )
    return {"message": "Timer updated", "workday": workday_out(aggregate, timers.tz)}


@router.post("/split", response_model=TimerActionOut)
async def split_timer(
    payload: SplitTimerIn,
    timers: TimerService = Depends(get_timer_service),
    current_user=Depends(get_current_user),
):
    aggregate, session = await timers.split(
        current_user,
        work_description=payload.work_description,
        task_id=payload.task_id,
        is_overtime=payload.is_overtime,
    )
    return {
        "message": "Timer split",
        "workday": workday_out(aggregate, timers.tz),
        "session": session_out(session, timers.tz),
    }


@router.post("/stop", response_model=TimerActionOut)
async def stop_timer(
    timers: TimerService = Depends(get_timer_service),
    current_user=Depends(get_current_user),
):
    aggregate, session = await timers.stop(current_user)
    return {
        "message": "Timer stopped",
        "workday": workday_out(aggregate, timers.tz),
        "session": session_out(session, timers.tz),
    }


@router.get("/active", response_model=Optional[ActiveTimerOut])
async def get_active_timer(
    timers: TimerService = Depends(get_timer_service),
    current_user=Depends(get_current_user),
):
    aggregate = await timers.get_active(current_user)
    return active_timer_out(aggregate) if aggregate else None


@router.get("/sessions", response_model=SessionsReportOut)
async def my_sessions(
    month: Optional[int] = Query(None, description="1-12"),
    year: Optional[int] = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    return await reporting.sessions_for_range(db, current_user, month, year)


@router.get("/sessions/user/{user_id}", response_model=SessionsReportOut)
async def user_sessions(
    user_id: str = Path(...),
    month: Optional[int] = Query(None, description="1-12"),
    year: Optional[int] = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
    current_user=Depends(get_current_user),
):
    return await reporting.sessions_for_user(db, current_user, user_id, month, year)


@router.delete("/sessions/{workday_id}/{session_id}", response_model=WorkdayOut)
async def delete_session(
    workday_id: str = Path(...),
    session_id: str = Path(...),
    timers: TimerService = Depends(get_timer_service),
    current_user=Depends(get_current_user),
):
    aggregate = await timers.delete_session(current_user, workday_id, session_id)
    return workday_out(aggregate, timers.tz)
