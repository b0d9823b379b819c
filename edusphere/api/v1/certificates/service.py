"""
Certificates service.

A student files a request (pending). The principal either approves it, which
issues the certificate right away (number, one year validity, status generated),
or rejects it with a reason. The student is notified of each outcome.
"""

import logging
import secrets
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.v1.notifications import service as notification_service
from edusphere.api.v1.users import service as users_service
from edusphere.core.enums import CertificateStatus
from edusphere.core.exceptions import ConflictError, NotFoundError, ServiceError
from edusphere.core.models import CertificateRequest, School

from .schemas import CertificateRejectRequest, CertificateRequestCreate, CertificateRequestResponse

logger = logging.getLogger(__name__)

NUMBER_ATTEMPTS = 5


def one_year_after(day: date) -> date:
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        # 29 Feb
        return day.replace(year=day.year + 1, day=28)


def certificate_number(school_name: str, year: int, serial: int) -> str:
    """e.g. SPR/2026/004213"""
    return f"{school_name[:3].upper()}/{year}/{serial:06d}"


async def _new_certificate_number(db: AsyncSession, school_name: str, year: int) -> str:
    for _ in range(NUMBER_ATTEMPTS):
        number = certificate_number(school_name, year, secrets.randbelow(1_000_000))
        taken = await db.execute(
            select(CertificateRequest.id).where(CertificateRequest.certificate_number == number)
        )
        if taken.scalar_one_or_none() is None:
            return number
    raise ConflictError("Could not allocate a certificate number")


async def _get_request(db: AsyncSession, school_id: UUID, request_id: UUID) -> CertificateRequest:
    req = await db.get(CertificateRequest, request_id)
    if not req or req.school_id != school_id:
        raise NotFoundError("Certificate request not found")
    return req


def _ensure_pending(req: CertificateRequest) -> None:
    if req.status != CertificateStatus.pending.value:
        raise ConflictError(f"Certificate request is already {req.status}")


async def create_request(
    db: AsyncSession,
    school_id: UUID,
    student_id: UUID,
    payload: CertificateRequestCreate,
) -> CertificateRequestResponse:
    await users_service.get_school_student(db, school_id, student_id)
    purpose = payload.purpose.strip()
    if not purpose:
        raise ServiceError("Purpose is required", status.HTTP_400_BAD_REQUEST)
    req = CertificateRequest(
        school_id=school_id,
        student_id=student_id,
        certificate_type=payload.certificate_type.value,
        purpose=purpose,
        additional_details=payload.additional_details,
        status=CertificateStatus.pending.value,
    )
    db.add(req)
    await db.commit()
    await db.refresh(req)
    return CertificateRequestResponse.model_validate(req)


async def approve_request(
    db: AsyncSession,
    school_id: UUID,
    request_id: UUID,
    reviewer_id: UUID,
    today: Optional[date] = None,
) -> CertificateRequestResponse:
    """
    Approve and issue in one write. The unique index on certificate_number is the
    final arbiter: a number taken by a concurrent approval is rolled back and redrawn.
    """
    today = today or date.today()
    school = await db.get(School, school_id)
    if not school:
        raise NotFoundError("School not found")
    school_name = school.name

    for _ in range(NUMBER_ATTEMPTS):
        req = await _get_request(db, school_id, request_id)
        _ensure_pending(req)
        number = await _new_certificate_number(db, school_name, today.year)
        req.certificate_number = number
        req.valid_until = one_year_after(today)
        req.status = CertificateStatus.generated.value
        req.reviewed_at = datetime.utcnow()
        req.reviewed_by = reviewer_id
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning("Certificate number %s was taken concurrently, drawing another", number)
            continue
        break
    else:
        raise ConflictError("Could not allocate a certificate number")
    await db.refresh(req)

    for outcome in (CertificateStatus.approved, CertificateStatus.generated):
        await notification_service.notify_certificate_status(
            db, req.student_id, req.certificate_type, outcome, req.id
        )
    logger.info("Certificate %s issued for request %s", req.certificate_number, req.id)
    return CertificateRequestResponse.model_validate(req)


async def reject_request(
    db: AsyncSession,
    school_id: UUID,
    request_id: UUID,
    reviewer_id: UUID,
    payload: CertificateRejectRequest,
) -> CertificateRequestResponse:
    req = await _get_request(db, school_id, request_id)
    _ensure_pending(req)
    req.status = CertificateStatus.rejected.value
    req.rejection_reason = payload.reason
    req.reviewed_at = datetime.utcnow()
    req.reviewed_by = reviewer_id
    await db.commit()
    await db.refresh(req)

    await notification_service.notify_certificate_status(
        db,
        req.student_id,
        req.certificate_type,
        CertificateStatus.rejected,
        req.id,
        rejection_reason=req.rejection_reason,
    )
    logger.info("Certificate request %s rejected", req.id)
    return CertificateRequestResponse.model_validate(req)


async def get_request(db: AsyncSession, school_id: UUID, request_id: UUID) -> CertificateRequestResponse:
    return CertificateRequestResponse.model_validate(await _get_request(db, school_id, request_id))


async def list_requests(
    db: AsyncSession,
    school_id: UUID,
    student_id: Optional[UUID] = None,
    req_status: Optional[CertificateStatus] = None,
) -> List[CertificateRequestResponse]:
    stmt = select(CertificateRequest).where(CertificateRequest.school_id == school_id)
    if student_id is not None:
        stmt = stmt.where(CertificateRequest.student_id == student_id)
    if req_status is not None:
        stmt = stmt.where(CertificateRequest.status == req_status.value)
    result = await db.execute(stmt.order_by(CertificateRequest.requested_at.desc()))
    return [CertificateRequestResponse.model_validate(r) for r in result.scalars().all()]
