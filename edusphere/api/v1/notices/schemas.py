from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from edusphere.core.enums import NoticePriority, UserRole


class NoticeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    # None: everyone in the school
    target_role: Optional[UserRole] = None
    priority: NoticePriority = NoticePriority.medium

    @field_validator("target_role")
    @classmethod
    def school_roles_only(cls, v: Optional[UserRole]) -> Optional[UserRole]:
        if v == UserRole.SUPER_ADMIN:
            raise ValueError("Notices target school roles only")
        return v


class NoticeResponse(BaseModel):
    id: UUID
    school_id: UUID
    title: str
    content: str
    target_role: Optional[UserRole] = None
    priority: NoticePriority
    created_by: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NoticePublishResponse(BaseModel):
    notice: NoticeResponse
    recipients: int
