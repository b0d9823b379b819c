from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class GradeCreate(BaseModel):
    student_id: UUID
    subject_name: str = Field(..., min_length=1, max_length=100)
    exam_type: str = Field(..., min_length=1, max_length=100)
    marks: Decimal = Field(..., ge=0, max_digits=7, decimal_places=2)
    max_marks: Decimal = Field(..., gt=0, max_digits=7, decimal_places=2)
    graded_on: Optional[date] = None
    comments: Optional[str] = None

    @model_validator(mode="after")
    def validate_marks(self) -> "GradeCreate":
        if self.marks > self.max_marks:
            raise ValueError("marks cannot exceed max_marks")
        return self


class GradeResponse(BaseModel):
    id: UUID
    school_id: UUID
    student_id: UUID
    subject_name: str
    exam_type: str
    marks: Decimal
    max_marks: Decimal
    percentage: int
    letter_grade: str
    graded_on: date
    teacher_id: Optional[UUID] = None
    comments: Optional[str] = None
    created_at: datetime
