"""
Fee aggregation over a school's fee records.

Pure functions: no database access, everything is recomputed from the records
passed in. Amounts are summed as Decimal so total == collected + pending + overdue
holds exactly; rates are floats in percent.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from edusphere.core.enums import FeeStatus

from .schemas import MonthlyCollection, SchoolFeeSummary, StudentFeeBreakdown

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
ZERO = Decimal("0")


@dataclass
class _Totals:
    total: Decimal = ZERO
    paid: Decimal = ZERO
    pending: Decimal = ZERO
    overdue: Decimal = ZERO
    records: int = 0
    paid_records: int = 0
    pending_records: int = 0
    overdue_records: int = 0

    def add(self, record) -> None:
        amount = _amount(record)
        status = _status(record)
        self.total += amount
        self.records += 1
        if status == FeeStatus.paid:
            self.paid += amount
            self.paid_records += 1
        elif status == FeeStatus.pending:
            self.pending += amount
            self.pending_records += 1
        elif status == FeeStatus.overdue:
            self.overdue += amount
            self.overdue_records += 1


def _amount(record) -> Decimal:
    value = record.amount
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _status(record) -> FeeStatus:
    return FeeStatus(record.status)


def _rate(part: Decimal, whole: Decimal) -> float:
    if whole <= 0:
        return 0.0
    return float(part / whole * 100)


def _totals(records: Iterable) -> _Totals:
    totals = _Totals()
    for record in records:
        totals.add(record)
    return totals


def trailing_months(today: date, count: int) -> List[Tuple[int, int]]:
    """(year, month) of the `count` calendar months ending with today's month, oldest first."""
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    months.reverse()
    return months


def month_label(year: int, month: int) -> str:
    return f"{MONTH_ABBR[month - 1]} {year}"


def aggregate_student(records: Iterable, student=None) -> StudentFeeBreakdown:
    """Breakdown of one student's records. `student` (id, full_name, email) only labels the result."""
    totals = _totals(records)
    return StudentFeeBreakdown(
        student_id=getattr(student, "id", None),
        student_name=getattr(student, "full_name", None),
        student_email=getattr(student, "email", None),
        total_fees=totals.total,
        paid_fees=totals.paid,
        pending_fees=totals.pending,
        overdue_amount=totals.overdue,
        outstanding_amount=totals.pending + totals.overdue,
        payment_percentage=_rate(totals.paid, totals.total),
        total_records=totals.records,
        paid_records=totals.paid_records,
        pending_records=totals.pending_records,
        overdue_records=totals.overdue_records,
    )


def aggregate_school(
    records: Sequence,
    roster: Sequence,
    today: Optional[date] = None,
    months: int = 6,
) -> SchoolFeeSummary:
    """
    School-wide summary.

    monthly_collection sums paid records by the calendar month of paid_date.
    per_student follows roster order and lists only students that have records;
    records of students missing from the roster still count in the totals.
    """
    today = today or date.today()
    totals = _totals(records)

    window = trailing_months(today, months)
    by_month = {key: ZERO for key in window}
    for record in records:
        if _status(record) != FeeStatus.paid or record.paid_date is None:
            continue
        key = (record.paid_date.year, record.paid_date.month)
        if key in by_month:
            by_month[key] += _amount(record)
    monthly = [
        MonthlyCollection(label=month_label(y, m), year=y, month=m, amount=by_month[(y, m)])
        for y, m in window
    ]

    records_by_student = {}
    for record in records:
        records_by_student.setdefault(record.student_id, []).append(record)
    per_student = [
        aggregate_student(records_by_student[student.id], student)
        for student in roster
        if records_by_student.get(student.id)
    ]

    roster_size = len(roster)
    return SchoolFeeSummary(
        total_amount=totals.total,
        collected_amount=totals.paid,
        pending_amount=totals.pending,
        overdue_amount=totals.overdue,
        total_records=totals.records,
        paid_records=totals.paid_records,
        pending_records=totals.pending_records,
        overdue_records=totals.overdue_records,
        collection_rate=_rate(totals.paid, totals.total),
        monthly_collection=monthly,
        per_student=per_student,
        roster_size=roster_size,
        students_with_fees=len(per_student),
        coverage_rate=(len(per_student) / roster_size * 100) if roster_size else 0.0,
        generated_on=today,
    )
