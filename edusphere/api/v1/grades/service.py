"""Grades service: post a grade (notifies the student) and list grades with banding."""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.v1.notifications import service as notification_service
from edusphere.api.v1.users import service as users_service
from edusphere.core.models import Grade

from .schemas import GradeCreate, GradeResponse

logger = logging.getLogger(__name__)


def _to_response(g: Grade) -> GradeResponse:
    percentage = notification_service.grade_percentage(g.marks, g.max_marks)
    return GradeResponse(
        id=g.id,
        school_id=g.school_id,
        student_id=g.student_id,
        subject_name=g.subject_name,
        exam_type=g.exam_type,
        marks=g.marks,
        max_marks=g.max_marks,
        percentage=percentage,
        letter_grade=notification_service.letter_grade(percentage),
        graded_on=g.graded_on,
        teacher_id=g.teacher_id,
        comments=g.comments,
        created_at=g.created_at,
    )


async def create_grade(
    db: AsyncSession,
    school_id: UUID,
    teacher_id: UUID,
    payload: GradeCreate,
) -> GradeResponse:
    await users_service.get_school_student(db, school_id, payload.student_id)
    # Rejects max_marks <= 0 before anything is written
    notification_service.grade_percentage(payload.marks, payload.max_marks)

    grade = Grade(
        school_id=school_id,
        student_id=payload.student_id,
        subject_name=payload.subject_name.strip(),
        exam_type=payload.exam_type.strip(),
        marks=payload.marks,
        max_marks=payload.max_marks,
        graded_on=payload.graded_on or date.today(),
        teacher_id=teacher_id,
        comments=payload.comments,
    )
    db.add(grade)
    await db.commit()
    await db.refresh(grade)

    await notification_service.notify_grade_posted(
        db,
        grade.student_id,
        grade.subject_name,
        grade.exam_type,
        grade.marks,
        grade.max_marks,
        grade.id,
    )
    logger.info("Grade %s posted for student %s", grade.id, grade.student_id)
    return _to_response(grade)


async def list_grades(
    db: AsyncSession,
    school_id: UUID,
    student_id: Optional[UUID] = None,
    subject_name: Optional[str] = None,
) -> List[GradeResponse]:
    stmt = select(Grade).where(Grade.school_id == school_id)
    if student_id is not None:
        stmt = stmt.where(Grade.student_id == student_id)
    if subject_name:
        stmt = stmt.where(Grade.subject_name == subject_name)
    result = await db.execute(stmt.order_by(Grade.graded_on.desc(), Grade.created_at.desc()))
    return [_to_response(g) for g in result.scalars().all()]
