from datetime import date as _date
from typing import Optional
from pydantic import BaseModel, Field


class ManualWorkdayIn(BaseModel):
    date: _date
    hours_worked: float = Field(default=0.0)
    additional_worked: float = Field(default=0.0)
    real_time_day_worked: str = ""
    absence_type: Optional[str] = None
    notes: Optional[str] = None


class HolidayOut(BaseModel):
    date: _date
    name: str
    type: str
