from typing import List
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.core.exceptions import NotFoundError, ServiceError
from edusphere.core.models import School

from .schemas import SchoolCreate, SchoolResponse


async def create_school(db: AsyncSession, payload: SchoolCreate) -> SchoolResponse:
    name = payload.name.strip()
    if not name:
        raise ServiceError("School name is required", status.HTTP_400_BAD_REQUEST)
    school = School(
        name=name,
        address=payload.address,
        phone=payload.phone,
        email=payload.email.lower() if payload.email else None,
    )
    db.add(school)
    await db.commit()
    await db.refresh(school)
    return SchoolResponse.model_validate(school)


async def list_schools(db: AsyncSession) -> List[SchoolResponse]:
    result = await db.execute(select(School).order_by(School.name))
    return [SchoolResponse.model_validate(s) for s in result.scalars().all()]


async def get_school(db: AsyncSession, school_id: UUID) -> SchoolResponse:
    school = await db.get(School, school_id)
    if not school:
        raise NotFoundError("School not found")
    return SchoolResponse.model_validate(school)
