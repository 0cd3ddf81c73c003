"""Profile model - Learner, tutor and admin accounts"""
from sqlalchemy import Column, String, Integer, Numeric, Boolean, Text, DateTime, Index
from sqlalchemy.dialects.postgresql import UUID, ARRAY
from sqlalchemy.sql import func

from scholarlink.database import Base


class ProfileRecord(Base):
    """Row of the remote ``profiles`` table, keyed by the auth user id"""

    __tablename__ = "profiles"

    id = Column(UUID(as_uuid=True), primary_key=True)
    email = Column(String(320), unique=True, nullable=False)
    username = Column(String(100), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    user_role = Column(String(20), nullable=False)
    selected_subjects = Column(ARRAY(String), nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    years_experience = Column(Integer, nullable=True)
    is_profile_complete = Column(Boolean, nullable=True, default=False)

    verification_status = Column(String(20), nullable=True, default="not_submitted")
    verification_id_type = Column(String(50), nullable=True)
    verification_id_number = Column(String(100), nullable=True)
    verification_id_image_url = Column(Text, nullable=True)
    verification_document_url = Column(Text, nullable=True)
    verification_reference_contact = Column(String(200), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_profiles_subjects", "selected_subjects", postgresql_using="gin"),
        Index("idx_profiles_role", "user_role"),
    )

    def __repr__(self):
        return f"<ProfileRecord(id={self.id}, email={self.email}, role={self.user_role})>"
