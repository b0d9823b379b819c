import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID

from edusphere.db.session import Base


class School(Base):
    """
    School (tenant) in the multi-tenant platform.

    Every school-scoped record carries school_id; queries always filter on it.
    """

    __tablename__ = "schools"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    # Set once the principal account exists (circular with users.school_id)
    principal_id = Column(UUID(as_uuid=True), ForeignKey("users.id", use_alter=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
