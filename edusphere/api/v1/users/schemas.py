"""User schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from edusphere.core.enums import UserRole


class UserCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRole
    # Required when a super admin creates a school user; ignored for principals (own school)
    school_id: Optional[UUID] = None
    class_id: Optional[UUID] = None
    roll_number: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=50)


class UserResponse(BaseModel):
    id: UUID
    school_id: Optional[UUID] = None
    full_name: str
    email: EmailStr
    role: UserRole
    class_id: Optional[UUID] = None
    roll_number: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserImportResponse(BaseModel):
    """Returned when every uploaded row was created."""

    created: int
    users: List[UserResponse]
