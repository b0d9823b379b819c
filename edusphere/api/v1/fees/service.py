"""Fees service: fee record CRUD and summaries built by the aggregator."""

import logging
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edusphere.api.v1.users import service as users_service
from edusphere.core.config import settings
from edusphere.core.enums import FeeStatus
from edusphere.core.exceptions import ConflictError, NotFoundError, ServiceError
from edusphere.core.models import FeeRecord, School

from .aggregator import aggregate_school, aggregate_student
from .export import build_fee_summary_workbook
from .schemas import (
    FeeRecordCreate,
    FeeRecordResponse,
    FeeRecordUpdate,
    SchoolFeeSummary,
    StudentFeeBreakdown,
)

logger = logging.getLogger(__name__)


def _apply_status(
    record: FeeRecord,
    new_status: FeeStatus,
    paid_date: Optional[date],
    today: date,
) -> None:
    """Keep paid_date present iff status is paid."""
    if new_status == FeeStatus.paid:
        record.paid_date = paid_date or record.paid_date or today
    else:
        if paid_date is not None:
            raise ServiceError("paid_date is only allowed when status is paid", status.HTTP_400_BAD_REQUEST)
        record.paid_date = None
    record.status = new_status.value


async def create_fee_record(
    db: AsyncSession,
    school_id: UUID,
    created_by: UUID,
    payload: FeeRecordCreate,
    today: Optional[date] = None,
) -> FeeRecordResponse:
    await users_service.get_school_student(db, school_id, payload.student_id)
    description = payload.description.strip()
    if not description:
        raise ServiceError("Description is required", status.HTTP_400_BAD_REQUEST)

    record = FeeRecord(
        school_id=school_id,
        student_id=payload.student_id,
        amount=payload.amount,
        due_date=payload.due_date,
        description=description,
        created_by=created_by,
    )
    _apply_status(record, payload.status, payload.paid_date, today or date.today())
    db.add(record)
    await db.commit()
    await db.refresh(record)
    logger.info("Fee record %s created for student %s (%s)", record.id, record.student_id, record.status)
    return FeeRecordResponse.model_validate(record)


async def list_fee_records(
    db: AsyncSession,
    school_id: UUID,
    student_id: Optional[UUID] = None,
    fee_status: Optional[FeeStatus] = None,
) -> List[FeeRecordResponse]:
    stmt = select(FeeRecord).where(FeeRecord.school_id == school_id)
    if student_id is not None:
        stmt = stmt.where(FeeRecord.student_id == student_id)
    if fee_status is not None:
        stmt = stmt.where(FeeRecord.status == fee_status.value)
    result = await db.execute(stmt.order_by(FeeRecord.due_date.desc(), FeeRecord.created_at.desc()))
    return [FeeRecordResponse.model_validate(r) for r in result.scalars().all()]


async def _get_record(db: AsyncSession, school_id: UUID, fee_id: UUID) -> FeeRecord:
    record = await db.get(FeeRecord, fee_id)
    if not record or record.school_id != school_id:
        raise NotFoundError("Fee record not found")
    return record


async def get_fee_record(db: AsyncSession, school_id: UUID, fee_id: UUID) -> FeeRecordResponse:
    return FeeRecordResponse.model_validate(await _get_record(db, school_id, fee_id))


async def update_fee_record(
    db: AsyncSession,
    school_id: UUID,
    fee_id: UUID,
    payload: FeeRecordUpdate,
    today: Optional[date] = None,
) -> FeeRecordResponse:
    """Partial update. Leaving paid clears paid_date; entering paid without a date sets today."""
    record = await _get_record(db, school_id, fee_id)
    data = payload.model_dump(exclude_unset=True)

    if "amount" in data:
        if data["amount"] is None:
            raise ServiceError("Amount cannot be empty", status.HTTP_400_BAD_REQUEST)
        record.amount = data["amount"]
    if data.get("due_date") is not None:
        record.due_date = data["due_date"]
    if "description" in data:
        description = (data["description"] or "").strip()
        if not description:
            raise ServiceError("Description is required", status.HTTP_400_BAD_REQUEST)
        record.description = description

    old_status = record.status
    new_status = data.get("status") or FeeStatus(record.status)
    paid_date = data.get("paid_date")
    if "status" in data or paid_date is not None:
        _apply_status(record, FeeStatus(new_status), paid_date, today or date.today())
    record.updated_at = datetime.utcnow()

    await db.commit()
    await db.refresh(record)
    if old_status != record.status:
        logger.info("Fee record %s: %s -> %s", record.id, old_status, record.status)
    return FeeRecordResponse.model_validate(record)


async def mark_fee_paid(
    db: AsyncSession,
    school_id: UUID,
    fee_id: UUID,
    today: Optional[date] = None,
) -> FeeRecordResponse:
    record = await _get_record(db, school_id, fee_id)
    if record.status == FeeStatus.paid.value:
        raise ConflictError("Fee record is already paid")
    old_status = record.status
    _apply_status(record, FeeStatus.paid, None, today or date.today())
    record.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(record)
    logger.info("Fee record %s: %s -> paid on %s", record.id, old_status, record.paid_date)
    return FeeRecordResponse.model_validate(record)


async def delete_fee_record(db: AsyncSession, school_id: UUID, fee_id: UUID) -> None:
    record = await _get_record(db, school_id, fee_id)
    await db.delete(record)
    await db.commit()


# --- Summaries ---
async def _school_records(db: AsyncSession, school_id: UUID) -> List[FeeRecord]:
    result = await db.execute(select(FeeRecord).where(FeeRecord.school_id == school_id))
    return list(result.scalars().all())


async def get_school_fee_summary(
    db: AsyncSession,
    school_id: UUID,
    today: Optional[date] = None,
) -> SchoolFeeSummary:
    records = await _school_records(db, school_id)
    roster = await users_service.list_school_students(db, school_id)
    return aggregate_school(records, roster, today=today, months=settings.fee_trend_months)


async def get_student_fee_summary(
    db: AsyncSession,
    school_id: UUID,
    student_id: UUID,
) -> StudentFeeBreakdown:
    student = await users_service.get_school_student(db, school_id, student_id)
    result = await db.execute(
        select(FeeRecord).where(FeeRecord.school_id == school_id, FeeRecord.student_id == student_id)
    )
    return aggregate_student(result.scalars().all(), student)


async def export_school_fee_summary(
    db: AsyncSession,
    school_id: UUID,
    today: Optional[date] = None,
) -> bytes:
    summary = await get_school_fee_summary(db, school_id, today=today)
    school = await db.get(School, school_id)
    return build_fee_summary_workbook(summary, school.name if school else "")
