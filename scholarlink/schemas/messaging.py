"""Conversation and message schemas"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Conversation(BaseModel):
    """Symmetric pair of participants with a cached copy of the last message"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user1_id: UUID
    user2_id: UUID
    user1_name: str
    user2_name: str
    last_message: Optional[str] = None
    last_message_time: Optional[datetime] = None
    created_at: datetime

    def other_user_name(self, current_user_id: UUID) -> str:
        return self.user2_name if current_user_id == self.user1_id else self.user1_name

    def other_user_id(self, current_user_id: UUID) -> UUID:
        return self.user2_id if current_user_id == self.user1_id else self.user1_id

    def involves(self, user_a: UUID, user_b: UUID) -> bool:
        """True if the participants are exactly {user_a, user_b}, in either order."""
        return {self.user1_id, self.user2_id} == {user_a, user_b}


class Message(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    conversation_id: UUID
    sender_id: UUID
    sender_name: str
    content: str
    is_read: bool = False
    created_at: datetime
