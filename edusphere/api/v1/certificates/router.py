"""Certificates router: student requests, principal review."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.auth.dependencies import get_current_user
from edusphere.auth.rbac import require_roles, school_scope
from edusphere.auth.schemas import CurrentUser
from edusphere.core.enums import CertificateStatus, UserRole
from edusphere.core.exceptions import ServiceError
from edusphere.db.session import get_db

from . import service
from .schemas import CertificateRejectRequest, CertificateRequestCreate, CertificateRequestResponse

router = APIRouter(prefix="/api/v1/certificates", tags=["certificates"])


@router.post("", response_model=CertificateRequestResponse, status_code=status.HTTP_201_CREATED)
async def request_certificate(
    payload: CertificateRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.STUDENT)),
) -> CertificateRequestResponse:
    try:
        return await service.create_request(db, school_scope(current_user), current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[CertificateRequestResponse])
async def list_certificate_requests(
    req_status: Optional[CertificateStatus] = Query(None, alias="status"),
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL, UserRole.STUDENT)),
) -> List[CertificateRequestResponse]:
    """Students see their own requests; principals see the whole school."""
    scope = school_scope(current_user, school_id)
    student_id = current_user.id if current_user.role == UserRole.STUDENT.value else None
    return await service.list_requests(db, scope, student_id=student_id, req_status=req_status)


@router.get("/{request_id}", response_model=CertificateRequestResponse)
async def get_certificate_request(
    request_id: UUID,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> CertificateRequestResponse:
    scope = school_scope(current_user, school_id)
    try:
        req = await service.get_request(db, scope, request_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if current_user.role == UserRole.STUDENT.value and req.student_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Certificate request not found")
    return req


@router.patch("/{request_id}/approve", response_model=CertificateRequestResponse)
async def approve_certificate_request(
    request_id: UUID,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> CertificateRequestResponse:
    """Approve and issue the certificate."""
    scope = school_scope(current_user, school_id)
    try:
        return await service.approve_request(db, scope, request_id, current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{request_id}/reject", response_model=CertificateRequestResponse)
async def reject_certificate_request(
    request_id: UUID,
    payload: CertificateRejectRequest,
    school_id: Optional[UUID] = Query(None, description="Super admin only"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles(UserRole.PRINCIPAL)),
) -> CertificateRequestResponse:
    scope = school_scope(current_user, school_id)
    try:
        return await service.reject_request(db, scope, request_id, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
