"""School analytics: daily attendance trend and per-subject performance."""

from collections import OrderedDict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.v1.users import service as users_service
from edusphere.core.enums import AttendanceStatus
from edusphere.core.models import AttendanceRecord, Grade

from .schemas import AnalyticsOverview, AttendanceDay, SubjectPerformance


def _rounded_percentage(part, whole) -> int:
    if not whole:
        return 0
    pct = Decimal(str(part)) / Decimal(str(whole)) * 100
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def attendance_trend(records: Iterable) -> List[AttendanceDay]:
    """Per date, oldest first; percentage = present / total."""
    days = {}
    for r in records:
        counts = days.setdefault(r.date, {s.value: 0 for s in AttendanceStatus})
        counts[AttendanceStatus(r.status).value] += 1
    trend = []
    for day in sorted(days):
        counts = days[day]
        total = sum(counts.values())
        trend.append(
            AttendanceDay(
                date=day,
                present=counts[AttendanceStatus.present.value],
                absent=counts[AttendanceStatus.absent.value],
                late=counts[AttendanceStatus.late.value],
                total=total,
                percentage=_rounded_percentage(counts[AttendanceStatus.present.value], total),
            )
        )
    return trend


def subject_performance(grades: Iterable) -> List[SubjectPerformance]:
    """Per subject in first-seen order; percentage = summed marks / summed max marks."""
    subjects = OrderedDict()
    for g in grades:
        entry = subjects.setdefault(g.subject_name, [Decimal("0"), Decimal("0"), 0])
        entry[0] += Decimal(str(g.marks))
        entry[1] += Decimal(str(g.max_marks))
        entry[2] += 1
    return [
        SubjectPerformance(
            subject=name,
            total_marks=marks,
            max_marks=max_marks,
            count=count,
            percentage=_rounded_percentage(marks, max_marks),
        )
        for name, (marks, max_marks, count) in subjects.items()
    ]


def _average(values: List[int]) -> float:
    return sum(values) / len(values) if values else 0.0


async def get_overview(
    db: AsyncSession,
    school_id: UUID,
    start: Optional[date] = None,
    end: Optional[date] = None,
    class_id: Optional[UUID] = None,
    student_id: Optional[UUID] = None,
) -> AnalyticsOverview:
    att_stmt = select(AttendanceRecord).where(AttendanceRecord.school_id == school_id)
    grade_stmt = select(Grade).where(Grade.school_id == school_id).order_by(Grade.graded_on, Grade.created_at)
    if start is not None:
        att_stmt = att_stmt.where(AttendanceRecord.date >= start)
        grade_stmt = grade_stmt.where(Grade.graded_on >= start)
    if end is not None:
        att_stmt = att_stmt.where(AttendanceRecord.date <= end)
        grade_stmt = grade_stmt.where(Grade.graded_on <= end)
    if class_id is not None:
        att_stmt = att_stmt.where(AttendanceRecord.class_id == class_id)
    if student_id is not None:
        att_stmt = att_stmt.where(AttendanceRecord.student_id == student_id)
        grade_stmt = grade_stmt.where(Grade.student_id == student_id)

    attendance = attendance_trend((await db.execute(att_stmt)).scalars().all())
    grades = (await db.execute(grade_stmt)).scalars().all()
    if class_id is not None:
        class_students = set(await users_service.list_class_student_ids(db, school_id, class_id))
        grades = [g for g in grades if g.student_id in class_students]
    subjects = subject_performance(grades)

    return AnalyticsOverview(
        attendance=attendance,
        subjects=subjects,
        average_attendance=_average([d.percentage for d in attendance]),
        average_performance=_average([s.percentage for s in subjects]),
    )
