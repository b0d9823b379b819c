"""Attendance API router."""

from datetime import date
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
from .schemas import AttendanceMarkRequest, AttendanceMarkResponse, AttendanceRecordResponse

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])


@router.post("/mark", response_model=AttendanceMarkResponse, status_code=status.HTTP_201_CREATED)
async def mark_attendance(
    payload: AttendanceMarkRequest,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER, UserRole.PRINCIPAL)),
) -> AttendanceMarkResponse:
    """Mark a class for one date. Re-marking a student on the same date overwrites the status."""
    scope = school_scope(current_user, school_id)
    try:
        return await service.mark_class_attendance(db, scope, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[AttendanceRecordResponse])
async def list_attendance(
    class_id: Optional[UUID] = Query(None),
    att_date: Optional[date] = Query(None, alias="date"),
    student_id: Optional[UUID] = Query(None),
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[AttendanceRecordResponse]:
    scope = school_scope(current_user, school_id)
    if current_user.role == UserRole.STUDENT.value:
        student_id = current_user.id
    return await service.list_attendance(db, scope, class_id=class_id, att_date=att_date, student_id=student_id)
