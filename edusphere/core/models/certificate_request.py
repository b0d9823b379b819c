import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID

from edusphere.db.session import Base


class CertificateRequest(Base):
    """Student request for a school certificate: pending -> generated | rejected."""

    __tablename__ = "certificate_requests"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending','approved','rejected','generated')",
            name="chk_certificate_request_status",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    school_id = Column(UUID(as_uuid=True), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    certificate_type = Column(String(20), nullable=False)
    purpose = Column(Text, nullable=False)
    additional_details = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    requested_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    certificate_number = Column(String(50), nullable=True, unique=True)
    valid_until = Column(Date, nullable=True)
