from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ReportSessionOut(BaseModel):
    id: str
    workday_id: str
    date: str
    start_time: datetime
    end_time: datetime
    time_range: str
    work_description: str = ""
    break_time: float
    overtime_time: float
    source: str


class SessionGroupOut(BaseModel):
    key: str
    task_id: Optional[str] = None
    task_title: Optional[str] = None
    work_description: str = ""
    sessions: list[ReportSessionOut]
    total_minutes: float
    total_hours: float
    percentage: float


class ReportUserOut(BaseModel):
    id: str
    first_name: str = ""
    last_name: str = ""


class SessionsReportOut(BaseModel):
    grouped: list[SessionGroupOut]
    total_minutes: float
    total_hours: float
    available_dates: list[str]
    user: Optional[ReportUserOut] = None
