from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserInfo(BaseModel):
    id: UUID
    name: str
    email: EmailStr
    role: str
    school_id: Optional[UUID] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo
    issued_at: datetime


class CurrentUser(BaseModel):
    """The authenticated user as seen by the core: id, role and owning school.

    Services never look this up themselves; routers pass the fields explicitly.
    """

    id: UUID
    school_id: Optional[UUID] = None  # None only for super_admin
    role: str
    name: str
