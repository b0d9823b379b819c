"""Attendance service: mark a class for a day (one row per student per date) and notify each student."""

import logging
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.v1.classes import service as class_service
from edusphere.api.v1.notifications import service as notification_service
from edusphere.api.v1.users import service as users_service
from edusphere.core.exceptions import ServiceError
from edusphere.core.models import AttendanceRecord

from .schemas import AttendanceMarkRequest, AttendanceMarkResponse, AttendanceRecordResponse

logger = logging.getLogger(__name__)


async def mark_class_attendance(
    db: AsyncSession,
    school_id: UUID,
    teacher_id: UUID,
    payload: AttendanceMarkRequest,
) -> AttendanceMarkResponse:
    """Upsert per (student, date). Every student must belong to the class; nothing is written otherwise."""
    cl = await class_service.get_school_class(db, school_id, payload.class_id)
    class_student_ids = set(await users_service.list_class_student_ids(db, school_id, cl.id))

    seen = set()
    for item in payload.records:
        if item.student_id not in class_student_ids:
            raise ServiceError(f"Student {item.student_id} is not in class {cl.name}", status.HTTP_400_BAD_REQUEST)
        if item.student_id in seen:
            raise ServiceError(f"Student {item.student_id} listed twice", status.HTTP_400_BAD_REQUEST)
        seen.add(item.student_id)

    existing_result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.student_id.in_(seen),
            AttendanceRecord.date == payload.date,
        )
    )
    existing = {r.student_id: r for r in existing_result.scalars().all()}

    now = datetime.utcnow()
    records = []
    for item in payload.records:
        record = existing.get(item.student_id)
        if record is None:
            record = AttendanceRecord(
                school_id=school_id,
                class_id=cl.id,
                student_id=item.student_id,
                date=payload.date,
            )
            db.add(record)
        record.status = item.status.value
        record.class_id = cl.id
        record.teacher_id = teacher_id
        record.updated_at = now
        records.append(record)
    await db.commit()
    for record in records:
        await db.refresh(record)

    for item in payload.records:
        await notification_service.notify_attendance_marked(db, item.student_id, payload.date, item.status, cl.name)

    count = len(records)
    logger.info("Attendance for class %s on %s marked for %d student(s)", cl.id, payload.date, count)
    return AttendanceMarkResponse(
        marked=count,
        message=f"Attendance marked for {count} students",
        records=[AttendanceRecordResponse.model_validate(r) for r in records],
    )


async def list_attendance(
    db: AsyncSession,
    school_id: UUID,
    class_id: Optional[UUID] = None,
    att_date: Optional[date] = None,
    student_id: Optional[UUID] = None,
) -> List[AttendanceRecordResponse]:
    stmt = select(AttendanceRecord).where(AttendanceRecord.school_id == school_id)
    if class_id is not None:
        stmt = stmt.where(AttendanceRecord.class_id == class_id)
    if att_date is not None:
        stmt = stmt.where(AttendanceRecord.date == att_date)
    if student_id is not None:
        stmt = stmt.where(AttendanceRecord.student_id == student_id)
    result = await db.execute(stmt.order_by(AttendanceRecord.date.desc(), AttendanceRecord.student_id))
    return [AttendanceRecordResponse.model_validate(r) for r in result.scalars().all()]
