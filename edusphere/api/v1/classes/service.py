from typing import List
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.models import User
from edusphere.core.enums import UserRole
from edusphere.core.exceptions import ConflictError, NotFoundError, ServiceError
from edusphere.core.models import SchoolClass

from .schemas import ClassCreate, ClassResponse


async def create_class(db: AsyncSession, school_id: UUID, payload: ClassCreate) -> ClassResponse:
    if payload.class_teacher_id is not None:
        teacher = await db.get(User, payload.class_teacher_id)
        if not teacher or teacher.school_id != school_id or teacher.role != UserRole.TEACHER.value:
            raise ServiceError("Invalid class teacher", status.HTTP_400_BAD_REQUEST)
    obj = SchoolClass(
        school_id=school_id,
        name=payload.name.strip(),
        grade=payload.grade.strip(),
        section=payload.section,
        class_teacher_id=payload.class_teacher_id,
    )
    db.add(obj)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Class name already exists for this school")
    await db.refresh(obj)
    return ClassResponse.model_validate(obj)


async def list_classes(db: AsyncSession, school_id: UUID) -> List[ClassResponse]:
    result = await db.execute(
        select(SchoolClass).where(SchoolClass.school_id == school_id).order_by(SchoolClass.grade, SchoolClass.name)
    )
    return [ClassResponse.model_validate(c) for c in result.scalars().all()]


async def get_school_class(db: AsyncSession, school_id: UUID, class_id: UUID) -> SchoolClass:
    """Class of this school or ServiceError 404."""
    cl = await db.get(SchoolClass, class_id)
    if not cl or cl.school_id != school_id:
        raise NotFoundError("Class not found")
    return cl
