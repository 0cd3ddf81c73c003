"""Session domain schema and derived values"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, computed_field

# Currency fractional unit used for cost previews and totals
CENT = Decimal("0.01")

PRESET_DURATIONS = (30, 60, 90, 120)
MIN_DURATION_MINUTES = 30


class SessionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


def calculate_total_cost(hourly_rate: Decimal, duration_minutes: int) -> Decimal:
    """Cost of a session: hourly rate x (duration / 60), rounded to the cent."""
    amount = Decimal(hourly_rate) * Decimal(duration_minutes) / Decimal(60)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


class Session(BaseModel):
    """
    A booking engagement between one student and one tutor.

    Student and tutor names/emails are snapshots copied at booking time so
    the record reads the same even if either profile changes later.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    tutor_id: UUID
    student_name: str
    student_email: str
    tutor_name: str
    tutor_email: str
    subject: str
    session_date: datetime
    duration: int
    message: str = ""
    hourly_rate: Decimal
    status: SessionStatus = SessionStatus.PENDING
    is_completed: bool = False
    rating: Optional[int] = None
    review: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def total_cost(self) -> Decimal:
        return calculate_total_cost(self.hourly_rate, self.duration)

    @property
    def is_pending(self) -> bool:
        return self.status == SessionStatus.PENDING

    @property
    def is_accepted(self) -> bool:
        return self.status == SessionStatus.ACCEPTED

    @property
    def is_rejected(self) -> bool:
        return self.status == SessionStatus.REJECTED

    @property
    def is_rated(self) -> bool:
        return self.rating is not None

    @property
    def is_terminal(self) -> bool:
        """Rejected and completed sessions accept no further status changes."""
        return self.is_rejected or self.is_completed

    @property
    def state_label(self) -> str:
        if self.is_rated:
            return "rated"
        if self.is_completed:
            return "completed"
        return self.status.value


class NewSession(BaseModel):
    """Payload inserted into the remote sessions table"""

    student_id: UUID
    tutor_id: UUID
    student_name: str
    student_email: str
    tutor_name: str
    tutor_email: str
    subject: str
    session_date: datetime
    duration: int
    message: str = ""
    hourly_rate: Decimal
