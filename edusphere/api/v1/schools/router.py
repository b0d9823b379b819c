"""Schools router (super admin)."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.rbac import require_roles
from edusphere.core.enums import UserRole
from edusphere.core.exceptions import ServiceError
from edusphere.db.session import get_db

from . import service
from .schemas import SchoolCreate, SchoolResponse

router = APIRouter(prefix="/api/v1/schools", tags=["schools"])


@router.post(
    "",
    response_model=SchoolResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.SUPER_ADMIN))],
)
async def create_school(
    payload: SchoolCreate,
    db: AsyncSession = Depends(get_db),
) -> SchoolResponse:
    try:
        return await service.create_school(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[SchoolResponse],
    dependencies=[Depends(require_roles(UserRole.SUPER_ADMIN))],
)
async def list_schools(db: AsyncSession = Depends(get_db)) -> List[SchoolResponse]:
    return await service.list_schools(db)


@router.get(
    "/{school_id}",
    response_model=SchoolResponse,
    dependencies=[Depends(require_roles(UserRole.SUPER_ADMIN))],
)
async def get_school(school_id: UUID, db: AsyncSession = Depends(get_db)) -> SchoolResponse:
    try:
        return await service.get_school(db, school_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
