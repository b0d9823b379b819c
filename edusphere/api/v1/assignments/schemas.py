from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AssignmentCreate(BaseModel):
    class_id: UUID
    subject_name: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: date
    max_marks: Optional[int] = Field(None, gt=0)


class AssignmentResponse(BaseModel):
    id: UUID
    school_id: UUID
    class_id: UUID
    subject_name: str
    title: str
    description: Optional[str] = None
    due_date: date
    max_marks: Optional[int] = None
    teacher_id: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AssignmentPostResponse(BaseModel):
    assignment: AssignmentResponse
    recipients: int
