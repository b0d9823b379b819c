from datetime import date, datetime
from datetime import date as _date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from edusphere.core.enums import HolidayType


class HolidayCreate(BaseModel):
    title: str = Field(..., max_length=255)
    description: str = ""
    date: date
    holiday_type: HolidayType = HolidayType.SCHOOL
    is_recurring: bool = False

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title is required")
        return v


class HolidayUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    date: Optional[_date] = None
    holiday_type: Optional[HolidayType] = None
    is_recurring: Optional[bool] = None


class HolidayResponse(BaseModel):
    id: UUID
    school_id: UUID
    title: str
    description: str
    date: date
    holiday_type: HolidayType
    is_recurring: bool
    notification_sent: bool
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class HolidayNotifyResponse(BaseModel):
    holiday: HolidayResponse
    recipients: int
