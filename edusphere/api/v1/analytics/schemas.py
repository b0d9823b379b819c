from datetime import date
from decimal import Decimal
from typing import List

from pydantic import BaseModel


class AttendanceDay(BaseModel):
    date: date
    present: int
    absent: int
    late: int
    total: int
    percentage: int


class SubjectPerformance(BaseModel):
    subject: str
    total_marks: Decimal
    max_marks: Decimal
    count: int
    percentage: int


class AnalyticsOverview(BaseModel):
    attendance: List[AttendanceDay]
    subjects: List[SubjectPerformance]
    average_attendance: float
    average_performance: float
