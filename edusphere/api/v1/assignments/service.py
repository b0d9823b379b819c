"""Assignments service: post to a class (students notified) and list."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.v1.classes import service as class_service
from edusphere.api.v1.notifications import service as notification_service
from edusphere.api.v1.users import service as users_service
from edusphere.core.models import Assignment

from .schemas import AssignmentCreate, AssignmentPostResponse, AssignmentResponse

logger = logging.getLogger(__name__)


async def post_assignment(
    db: AsyncSession,
    school_id: UUID,
    teacher_id: UUID,
    payload: AssignmentCreate,
) -> AssignmentPostResponse:
    cl = await class_service.get_school_class(db, school_id, payload.class_id)
    assignment = Assignment(
        school_id=school_id,
        class_id=cl.id,
        subject_name=payload.subject_name.strip(),
        title=payload.title.strip(),
        description=payload.description,
        due_date=payload.due_date,
        max_marks=payload.max_marks,
        teacher_id=teacher_id,
    )
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)

    student_ids = await users_service.list_class_student_ids(db, school_id, cl.id)
    created = await notification_service.notify_assignment_posted(
        db,
        student_ids,
        assignment.title,
        assignment.subject_name,
        cl.name,
        assignment.due_date,
        assignment.id,
    )
    logger.info("Assignment %s posted to class %s (%d student(s))", assignment.id, cl.id, len(created))
    return AssignmentPostResponse(assignment=AssignmentResponse.model_validate(assignment), recipients=len(created))


async def list_assignments(
    db: AsyncSession,
    school_id: UUID,
    class_id: Optional[UUID] = None,
) -> List[AssignmentResponse]:
    stmt = select(Assignment).where(Assignment.school_id == school_id)
    if class_id is not None:
        stmt = stmt.where(Assignment.class_id == class_id)
    result = await db.execute(stmt.order_by(Assignment.due_date, Assignment.created_at))
    return [AssignmentResponse.model_validate(a) for a in result.scalars().all()]


async def list_student_assignments(db: AsyncSession, school_id: UUID, student_id: UUID) -> List[AssignmentResponse]:
    """Assignments of the student's current class."""
    student = await users_service.get_school_student(db, school_id, student_id)
    if student.class_id is None:
        return []
    return await list_assignments(db, school_id, class_id=student.class_id)
