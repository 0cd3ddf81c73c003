"""User profile schema"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class UserRole(str, Enum):
    LEARNER = "learner"
    TUTOR = "tutor"
    ADMIN = "admin"


class VerificationStatus(str, Enum):
    NOT_SUBMITTED = "not_submitted"
    PENDING_REVIEW = "pending_review"
    VERIFIED = "verified"

    @property
    def label(self) -> str:
        return {
            VerificationStatus.NOT_SUBMITTED: "Verification Not Submitted",
            VerificationStatus.PENDING_REVIEW: "Verification Pending",
            VerificationStatus.VERIFIED: "Verified Tutor",
        }[self]

    @property
    def helper_text(self) -> str:
        return {
            VerificationStatus.NOT_SUBMITTED: "Submit your credentials to earn a verification badge.",
            VerificationStatus.PENDING_REVIEW: "We are reviewing the documents you submitted.",
            VerificationStatus.VERIFIED: "Credentials reviewed and approved.",
        }[self]


class UserProfile(BaseModel):
    """Profile of a signed-up user. Older rows may hold nulls for optional text fields."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    first_name: str = ""
    last_name: str = ""
    bio: str = ""
    user_role: UserRole
    selected_subjects: List[str] = []
    hourly_rate: Optional[Decimal] = None
    years_experience: Optional[int] = None
    is_profile_complete: bool = False
    verification_status: VerificationStatus = VerificationStatus.NOT_SUBMITTED
    verification_id_type: Optional[str] = None
    verification_id_number: Optional[str] = None
    verification_id_image_url: Optional[str] = None
    verification_document_url: Optional[str] = None
    verification_reference_contact: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("first_name", "last_name", "bio", mode="before")
    @classmethod
    def _null_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("selected_subjects", mode="before")
    @classmethod
    def _null_to_list(cls, value):
        return [] if value is None else value

    @field_validator("is_profile_complete", mode="before")
    @classmethod
    def _null_to_false(cls, value):
        return False if value is None else value

    @field_validator("verification_status", mode="before")
    @classmethod
    def _null_to_not_submitted(cls, value):
        return VerificationStatus.NOT_SUBMITTED if value is None else value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_tutor(self) -> bool:
        return self.user_role == UserRole.TUTOR

    @property
    def is_tutor_verified(self) -> bool:
        return self.verification_status == VerificationStatus.VERIFIED
