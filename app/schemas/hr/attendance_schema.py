from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from app.schemas.auth.user import UserBrief

class AttendanceRecord(BaseModel):
    id: int
    date: date
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class AttendanceResponse(AttendanceRecord):
    user_id: int
    user: Optional[UserBrief] = None
    total_hours: Optional[Decimal] = None

class AttendanceResult(BaseModel):
    record: AttendanceRecord

class TodayAttendance(BaseModel):
    record: Optional[AttendanceRecord] = None
    online_checkin_allowed: bool
