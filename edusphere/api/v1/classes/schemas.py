from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    grade: str = Field(..., min_length=1, max_length=20)
    section: Optional[str] = Field(None, max_length=20)
    class_teacher_id: Optional[UUID] = None


class ClassResponse(BaseModel):
    id: UUID
    school_id: UUID
    name: str
    grade: str
    section: Optional[str] = None
    class_teacher_id: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True
