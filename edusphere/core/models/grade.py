import uuid
from datetime import date, datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID

from edusphere.db.session import Base


class Grade(Base):
    """Marks a student obtained in one exam of one subject."""

    __tablename__ = "grades"
    __table_args__ = (
        CheckConstraint("max_marks > 0", name="chk_grade_max_marks"),
        CheckConstraint("marks >= 0 AND marks <= max_marks", name="chk_grade_marks_range"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    school_id = Column(UUID(as_uuid=True), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_name = Column(String(100), nullable=False)
    exam_type = Column(String(100), nullable=False)
    marks = Column(Numeric(7, 2), nullable=False)
    max_marks = Column(Numeric(7, 2), nullable=False)
    graded_on = Column(Date, nullable=False, default=date.today)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
