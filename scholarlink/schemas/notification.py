"""In-app notification schema"""
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class NotificationType(str, Enum):
    SESSION_REQUEST = "session_request"
    SESSION_ACCEPTED = "session_accepted"
    SESSION_REJECTED = "session_rejected"


class Notification(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    message: str
    type: NotificationType
    related_id: Optional[UUID] = None
    is_read: bool = False
    created_at: datetime
