"""Remote conversations and messages tables access"""
from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import select, update, or_

from scholarlink.database import AsyncSessionLocal
from scholarlink.models.conversation import ConversationRecord, MessageRecord
from scholarlink.schemas.messaging import Conversation, Message


class ConversationStore:
    def __init__(self, session_factory=AsyncSessionLocal):
        self._session_factory = session_factory

    async def list_conversations_for(self, user_id: UUID) -> List[Conversation]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(ConversationRecord)
                .where(or_(ConversationRecord.user1_id == user_id, ConversationRecord.user2_id == user_id))
                .order_by(ConversationRecord.last_message_time.desc().nulls_last())
            )
            return [Conversation.model_validate(row) for row in result.scalars().all()]

    async def insert_conversation(self, user1_id: UUID, user2_id: UUID, user1_name: str, user2_name: str) -> Conversation:
        async with self._session_factory() as db:
            record = ConversationRecord(
                user1_id=user1_id,
                user2_id=user2_id,
                user1_name=user1_name,
                user2_name=user2_name,
            )
            db.add(record)
            await db.commit()
            await db.refresh(record)
            return Conversation.model_validate(record)

    async def list_messages(self, conversation_id: UUID) -> List[Message]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(MessageRecord)
                .where(MessageRecord.conversation_id == conversation_id)
                .order_by(MessageRecord.created_at.asc())
            )
            return [Message.model_validate(row) for row in result.scalars().all()]

    async def insert_message(self, conversation_id: UUID, sender_id: UUID, sender_name: str, content: str) -> Message:
        async with self._session_factory() as db:
            record = MessageRecord(
                conversation_id=conversation_id,
                sender_id=sender_id,
                sender_name=sender_name,
                content=content,
            )
            db.add(record)
            await db.commit()
            await db.refresh(record)
            return Message.model_validate(record)

    async def update_last_message(self, conversation_id: UUID, content: str, sent_at: datetime) -> None:
        async with self._session_factory() as db:
            await db.execute(
                update(ConversationRecord)
                .where(ConversationRecord.id == conversation_id)
                .values(last_message=content, last_message_time=sent_at)
            )
            await db.commit()
