"""Fees router: fee records, school and student summaries, Excel export."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.dependencies import get_current_user
from edusphere.auth.rbac import require_roles, school_scope
from edusphere.auth.schemas import CurrentUser
from edusphere.core.enums import FeeStatus, UserRole
from edusphere.core.exceptions import ServiceError
from edusphere.db.session import get_db

from . import service
from .schemas import (
    FeeRecordCreate,
    FeeRecordResponse,
    FeeRecordUpdate,
    SchoolFeeSummary,
    StudentFeeBreakdown,
)

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


@router.post("", response_model=FeeRecordResponse, status_code=status.HTTP_201_CREATED)
async def create_fee_record(
    payload: FeeRecordCreate,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> FeeRecordResponse:
    scope = school_scope(current_user, school_id)
    try:
        return await service.create_fee_record(db, scope, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[FeeRecordResponse])
async def list_fee_records(
    student_id: Optional[UUID] = Query(None),
    fee_status: Optional[FeeStatus] = Query(None, alias="status"),
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[FeeRecordResponse]:
    """Students only ever see their own records."""
    scope = school_scope(current_user, school_id)
    if current_user.role == UserRole.STUDENT.value:
        student_id = current_user.id
    return await service.list_fee_records(db, scope, student_id=student_id, fee_status=fee_status)


@router.get("/summary", response_model=SchoolFeeSummary)
async def school_fee_summary(
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> SchoolFeeSummary:
    return await service.get_school_fee_summary(db, school_scope(current_user, school_id))


@router.get("/summary/export")
async def export_fee_summary(
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> Response:
    """Download the school fee summary as an Excel workbook."""
    content = await service.export_school_fee_summary(db, school_scope(current_user, school_id))
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=fee_report.xlsx"},
    )


@router.get("/me/summary", response_model=StudentFeeBreakdown)
async def my_fee_summary(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.STUDENT)),
) -> StudentFeeBreakdown:
    try:
        return await service.get_student_fee_summary(db, school_scope(current_user), current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/students/{student_id}/summary", response_model=StudentFeeBreakdown)
async def student_fee_summary(
    student_id: UUID,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentFeeBreakdown:
    if current_user.role == UserRole.STUDENT.value and student_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot view another student's fees")
    scope = school_scope(current_user, school_id)
    try:
        return await service.get_student_fee_summary(db, scope, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{fee_id}", response_model=FeeRecordResponse)
async def get_fee_record(
    fee_id: UUID,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeRecordResponse:
    scope = school_scope(current_user, school_id)
    try:
        record = await service.get_fee_record(db, scope, fee_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if current_user.role == UserRole.STUDENT.value and record.student_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fee record not found")
    return record


@router.put("/{fee_id}", response_model=FeeRecordResponse)
async def update_fee_record(
    fee_id: UUID,
    payload: FeeRecordUpdate,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> FeeRecordResponse:
    scope = school_scope(current_user, school_id)
    try:
        return await service.update_fee_record(db, scope, fee_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{fee_id}/pay", response_model=FeeRecordResponse)
async def mark_fee_paid(
    fee_id: UUID,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> FeeRecordResponse:
    scope = school_scope(current_user, school_id)
    try:
        return await service.mark_fee_paid(db, scope, fee_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{fee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fee_record(
    fee_id: UUID,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> Response:
    scope = school_scope(current_user, school_id)
    try:
        await service.delete_fee_record(db, scope, fee_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
