from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field


class StartTimerIn(BaseModel):
    work_description: str = ""
    task_id: Optional[str] = None
    is_overtime: bool = False


class UpdateTimerIn(BaseModel):
    # None leaves a field untouched; task_id="" clears the task
    work_description: Optional[str] = None
    task_id: Optional[str] = None
    is_overtime: Optional[bool] = None


class SplitTimerIn(BaseModel):
    work_description: str = ""
    task_id: Optional[str] = None
    is_overtime: Optional[bool] = None


class CanStartOut(BaseModel):
    can_start: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    holiday_name: Optional[str] = None


class SessionOut(BaseModel):
    id: str
    start_time: datetime
    end_time: datetime
    time_range: str
    is_break: bool
    break_time: float
    is_overtime: bool
    overtime_time: float
    work_description: str = ""
    task_id: Optional[str] = None
    qr_code_id: Optional[str] = None
    source: Literal["timer", "qr", "qr_legacy"]


class ActiveTimerOut(BaseModel):
    workday_id: str
    date: str
    start_time: datetime
    is_break: bool
    is_overtime: bool
    work_description: str = ""
    task_id: Optional[str] = None
    qr_code_id: Optional[str] = None
    elapsed_seconds: float
    break_seconds: float
    overtime_seconds: float
    worked_seconds: float


class WorkdayOut(BaseModel):
    id: str
    date: str
    entry_mode: Literal["timer", "manual"]
    hours_worked: float
    additional_worked: float
    real_time_day_worked: str
    absence_type: Optional[str] = None
    notes: Optional[str] = None
    sessions: list[SessionOut] = Field(default_factory=list)
    active_timer: Optional[ActiveTimerOut] = None


class TimerActionOut(BaseModel):
    message: str
    workday: WorkdayOut
    session: Optional[SessionOut] = None
