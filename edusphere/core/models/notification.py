"""Per-recipient notification records."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID

from edusphere.db.session import Base


class Notification(Base):
    """
    One notification addressed to exactly one recipient.
    created_at is immutable; read only ever goes False -> True.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        CheckConstraint(
            "category IN ('info','success','warning','error','assignment','grade','attendance','notice')",
            name="chk_notification_category",
        ),
        Index("ix_notifications_recipient_read", "recipient_user_id", "read"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    recipient_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    category = Column(String(20), nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    # Opaque link or id the client navigates to (e.g. /grades/<id>)
    action_reference = Column(String(255), nullable=True)
    # "metadata" is reserved on declarative classes
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)
