"""Local session reminder schema"""
from datetime import datetime
from enum import IntEnum
from uuid import UUID

from pydantic import BaseModel


class LeadTime(IntEnum):
    """Offset in seconds before the session start at which a reminder fires"""

    ONE_DAY = 86_400
    ONE_HOUR = 3_600

    @property
    def description(self) -> str:
        return "24 hours" if self is LeadTime.ONE_DAY else "1 hour"


def reminder_identifier(session_id: UUID, lead: LeadTime) -> str:
    """Deterministic reminder id, reconstructible without persisted state."""
    return f"{session_id}-{int(lead)}"


class SessionReminder(BaseModel):
    id: str
    session_id: UUID
    subject: str
    tutor_name: str
    fire_date: datetime
    lead_time_description: str
