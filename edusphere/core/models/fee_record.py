"""Fee record: one amount owed by one student of one school."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID

from edusphere.core.enums import FeeStatus
from edusphere.db.session import Base


class FeeRecord(Base):
    """
    paid_date is set if and only if status is paid.
    Overdue is never derived from due_date; it is set explicitly.
    """

    __tablename__ = "fee_records"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending','paid','overdue')",
            name="chk_fee_record_status",
        ),
        CheckConstraint("amount >= 0", name="chk_fee_record_amount"),
        CheckConstraint(
            "("
            "(status = 'paid' AND paid_date IS NOT NULL)"
            " OR "
            "(status <> 'paid' AND paid_date IS NULL)"
            ")",
            name="chk_fee_record_paid_date",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    school_id = Column(UUID(as_uuid=True), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=FeeStatus.pending.value)
    paid_date = Column(Date, nullable=True)
    description = Column(Text, nullable=False)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
