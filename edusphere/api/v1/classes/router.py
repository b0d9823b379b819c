"""Classes router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.rbac import require_roles, school_scope
from edusphere.auth.schemas import CurrentUser
from edusphere.core.enums import UserRole
from edusphere.core.exceptions import ServiceError
from edusphere.db.session import get_db

from . import service
from .schemas import ClassCreate, ClassResponse

router = APIRouter(prefix="/api/v1/classes", tags=["classes"])


@router.post("", response_model=ClassResponse, status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: ClassCreate,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> ClassResponse:
    scope = school_scope(current_user, school_id)
    try:
        return await service.create_class(db, scope, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[ClassResponse])
async def list_classes(
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL, UserRole.TEACHER)),
) -> List[ClassResponse]:
    return await service.list_classes(db, school_scope(current_user, school_id))
