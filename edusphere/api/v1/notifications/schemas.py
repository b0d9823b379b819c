"""Notification schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from edusphere.core.enums import NotificationCategory


class NotificationResponse(BaseModel):
    id: UUID
    recipient_user_id: UUID
    title: str
    message: str
    category: NotificationCategory
    read: bool
    read_at: Optional[datetime] = None
    action_reference: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime


class UnreadCountResponse(BaseModel):
    unread_count: int


class FeedVersionResponse(BaseModel):
    """Clients re-fetch the feed only when version changes."""

    version: int
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int


class SystemNotificationCreate(BaseModel):
    """Broadcast to explicit users, or to every non-admin user of the school when user_ids is empty."""

    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    category: NotificationCategory = NotificationCategory.INFO
    user_ids: List[UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_category(self) -> "SystemNotificationCreate":
        if self.category not in (
            NotificationCategory.INFO,
            NotificationCategory.WARNING,
            NotificationCategory.ERROR,
        ):
            raise ValueError("System notifications must be info, warning or error")
        return self


class FanOutResponse(BaseModel):
    recipients: int
    notifications: List[NotificationResponse]


class CleanupResponse(BaseModel):
    removed: int
    days_to_keep: int
