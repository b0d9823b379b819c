from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from edusphere.core.enums import CertificateStatus, CertificateType


class CertificateRequestCreate(BaseModel):
    certificate_type: CertificateType
    purpose: str = Field(..., min_length=1)
    additional_details: Optional[str] = None


class CertificateRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("A rejection reason is required")
        return v


class CertificateRequestResponse(BaseModel):
    id: UUID
    school_id: UUID
    student_id: UUID
    certificate_type: CertificateType
    purpose: str
    additional_details: Optional[str] = None
    status: CertificateStatus
    requested_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    rejection_reason: Optional[str] = None
    certificate_number: Optional[str] = None
    valid_until: Optional[date] = None

    class Config:
        from_attributes = True
