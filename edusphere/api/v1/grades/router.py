"""Grades router."""

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
from .schemas import GradeCreate, GradeResponse

router = APIRouter(prefix="/api/v1/grades", tags=["grades"])


@router.post("", response_model=GradeResponse, status_code=status.HTTP_201_CREATED)
async def create_grade(
    payload: GradeCreate,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER, UserRole.PRINCIPAL)),
) -> GradeResponse:
    """Post a grade; the student is notified with percentage and letter grade."""
    scope = school_scope(current_user, school_id)
    try:
        return await service.create_grade(db, scope, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[GradeResponse])
async def list_grades(
    student_id: Optional[UUID] = Query(None),
    subject_name: Optional[str] = Query(None),
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[GradeResponse]:
    """Students see only their own grades."""
    scope = school_scope(current_user, school_id)
    if current_user.role == UserRole.STUDENT.value:
        student_id = current_user.id
    return await service.list_grades(db, scope, student_id=student_id, subject_name=subject_name)
