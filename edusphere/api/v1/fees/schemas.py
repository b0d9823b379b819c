"""Fee record and fee aggregate schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from edusphere.core.enums import FeeStatus


# --- Fee records ---
class FeeRecordCreate(BaseModel):
    student_id: UUID
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    due_date: date
    description: str = Field(..., min_length=1)
    status: FeeStatus = FeeStatus.pending
    # Only with status paid; defaults to today
    paid_date: Optional[date] = None

    @model_validator(mode="after")
    def validate_paid_date(self) -> "FeeRecordCreate":
        if self.paid_date is not None and self.status != FeeStatus.paid:
            raise ValueError("paid_date is only allowed when status is paid")
        return self


class FeeRecordUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    due_date: Optional[date] = None
    description: Optional[str] = Field(None, min_length=1)
    status: Optional[FeeStatus] = None
    paid_date: Optional[date] = None


class FeeRecordResponse(BaseModel):
    id: UUID
    school_id: UUID
    student_id: UUID
    amount: Decimal
    due_date: date
    status: FeeStatus
    paid_date: Optional[date] = None
    description: str
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# --- Aggregates ---
class MonthlyCollection(BaseModel):
    label: str  # e.g. "Oct 2026"
    year: int
    month: int
    amount: Decimal


class StudentFeeBreakdown(BaseModel):
    student_id: Optional[UUID] = None
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    total_fees: Decimal
    paid_fees: Decimal
    pending_fees: Decimal
    overdue_amount: Decimal
    outstanding_amount: Decimal
    payment_percentage: float
    total_records: int
    paid_records: int
    pending_records: int
    overdue_records: int


class SchoolFeeSummary(BaseModel):
    total_amount: Decimal
    collected_amount: Decimal
    pending_amount: Decimal
    overdue_amount: Decimal
    total_records: int
    paid_records: int
    pending_records: int
    overdue_records: int
    collection_rate: float
    monthly_collection: List[MonthlyCollection]
    per_student: List[StudentFeeBreakdown]
    roster_size: int
    students_with_fees: int
    coverage_rate: float
    generated_on: date
