from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field


class ScanIn(BaseModel):
    code: str = ""


class ScanOut(BaseModel):
    type: Literal["entry", "exit"]
    entry_time: datetime
    exit_time: Optional[datetime] = None
    message: str


class ScanEntryOut(BaseModel):
    id: str
    qr_code_id: str
    qr_code_name: str = ""
    entry_time: datetime
    exit_time: Optional[datetime] = None


class QRCodeIn(BaseModel):
    name: str = Field(..., min_length=1)


class QRCodeOut(BaseModel):
    id: str
    code: str
    name: str
    is_active: bool
    created_at: Optional[datetime] = None


class QRVerifyOut(BaseModel):
    valid: bool
    code: str
    name: str
    company_id: str
    company_name: Optional[str] = None
