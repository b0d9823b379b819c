"""Assignments router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.dependencies import get_current_user
from edusphere.auth.rbac import require_roles, school_scope
from edusphere.auth.schemas import CurrentUser
from edusphere.core.enums import UserRole
from edusphere.core.exceptions import ServiceError
from edusphere.db.session import get_db

from . import service
from .schemas import AssignmentCreate, AssignmentPostResponse, AssignmentResponse

router = APIRouter(prefix="/api/v1/assignments", tags=["assignments"])


@router.post("", response_model=AssignmentPostResponse, status_code=status.HTTP_201_CREATED)
async def post_assignment(
    payload: AssignmentCreate,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER, UserRole.PRINCIPAL)),
) -> AssignmentPostResponse:
    """Post an assignment; every student of the class is notified."""
    scope = school_scope(current_user, school_id)
    try:
        return await service.post_assignment(db, scope, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[AssignmentResponse])
async def list_assignments(
    class_id: Optional[UUID] = Query(None),
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[AssignmentResponse]:
    """Students see the assignments of their own class."""
    scope = school_scope(current_user, school_id)
    if current_user.role == UserRole.STUDENT.value:
        try:
            return await service.list_student_assignments(db, scope, current_user.id)
        except ServiceError as e:
            raise HTTPException(status_code=e.status_code, detail=e.message)
    return await service.list_assignments(db, scope, class_id=class_id)
