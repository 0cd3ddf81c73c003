"""Session model - Booking requests between a student and a tutor"""
from sqlalchemy import Column, String, Integer, Numeric, Boolean, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import uuid

from scholarlink.database import Base


class SessionRecord(Base):
    """Row of the remote ``sessions`` table"""

    __tablename__ = "sessions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    tutor_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)

    # Snapshots taken at booking time
    student_name = Column(String(200), nullable=False)
    student_email = Column(String(320), nullable=False)
    tutor_name = Column(String(200), nullable=False)
    tutor_email = Column(String(320), nullable=False)

    subject = Column(String(100), nullable=False)
    session_date = Column(DateTime(timezone=True), nullable=False)
    duration = Column(Integer, CheckConstraint("duration > 0"), nullable=False)
    message = Column(Text, nullable=False, default="")
    hourly_rate = Column(Numeric(10, 2), nullable=False)

    status = Column(String(20), nullable=False, default="pending", server_default="pending")
    is_completed = Column(Boolean, nullable=False, default=False, server_default="false")
    rating = Column(Integer, CheckConstraint("rating BETWEEN 1 AND 5"), nullable=True)
    review = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_sessions_student", "student_id"),
        Index("idx_sessions_tutor", "tutor_id"),
        Index("idx_sessions_created", "created_at"),
    )

    def __repr__(self):
        return f"<SessionRecord(id={self.id}, subject={self.subject}, status={self.status})>"
