from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from edusphere.core.enums import AttendanceStatus


class AttendanceMarkItem(BaseModel):
    student_id: UUID
    status: AttendanceStatus


class AttendanceMarkRequest(BaseModel):
    class_id: UUID
    date: date
    records: List[AttendanceMarkItem] = Field(..., min_length=1)


class AttendanceRecordResponse(BaseModel):
    id: UUID
    school_id: UUID
    class_id: UUID
    student_id: UUID
    date: date
    status: AttendanceStatus
    teacher_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AttendanceMarkResponse(BaseModel):
    marked: int
    message: str
    records: List[AttendanceRecordResponse]
