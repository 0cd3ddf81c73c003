"""
Messaging Manager

Conversations between two users and their append-only message logs.

get_or_create_conversation looks the pair up in the local cache only; the
backend has no uniqueness constraint on participant pairs, so two devices
creating the same pair's first conversation at once can end up with two
conversations.
"""
import logging
from typing import Dict, List
from uuid import UUID

from scholarlink.errors import NotFoundError, ValidationError
from scholarlink.schemas.messaging import Conversation, Message
from scholarlink.schemas.user import UserProfile
from scholarlink.stores.conversation_store import ConversationStore
from scholarlink.utils import remote_operation

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000


class MessagingManager:
    def __init__(self, store: ConversationStore, user_session):
        self._store = store
        self._user_session = user_session
        self.conversations: List[Conversation] = []
        self.messages: Dict[UUID, List[Message]] = {}

    async def load_conversations(self) -> List[Conversation]:
        user = self._user_session.current_user
        if user is None:
            return []

        with remote_operation(logger, "load conversations", "Failed to load conversations. Please try again."):
            self.conversations = await self._store.list_conversations_for(user.id)
        return list(self.conversations)

    async def load_messages(self, conversation_id: UUID) -> List[Message]:
        self._require_conversation(conversation_id)

        with remote_operation(logger, "load messages", "Failed to load messages. Please try again."):
            self.messages[conversation_id] = await self._store.list_messages(conversation_id)
        return list(self.messages[conversation_id])

    def messages_for(self, conversation_id: UUID) -> List[Message]:
        return list(self.messages.get(conversation_id, []))

    async def send_message(self, conversation_id: UUID, content: str) -> Message:
        """Append a message from the signed-in user to a conversation."""
        sender = self._user_session.require_user()
        conversation = self._require_conversation(conversation_id)

        content = content.strip()
        if not content:
            raise ValidationError("Message cannot be empty", field="content")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"Messages are limited to {MAX_MESSAGE_LENGTH} characters", field="content")

        with remote_operation(logger, "send message", "Failed to send message. Please try again."):
            created = await self._store.insert_message(conversation.id, sender.id, sender.full_name, content)

        self.messages.setdefault(conversation.id, []).append(created)

        # The message is already sent; a stale conversation preview is only logged
        try:
            await self._store.update_last_message(conversation.id, content, created.created_at)
        except Exception as e:
            logger.warning(f"Failed to update last message for conversation {conversation.id}: {e}")

        # Most recently active conversation goes first
        refreshed = conversation.model_copy(
            update={"last_message": content, "last_message_time": created.created_at}
        )
        self.conversations = [refreshed] + [c for c in self.conversations if c.id != conversation.id]
        return created

    async def get_or_create_conversation(self, other_user: UserProfile) -> Conversation:
        """Return the cached conversation with ``other_user``, creating it on first contact."""
        current = self._user_session.require_user()
        if other_user.id == current.id:
            raise ValidationError("You cannot start a conversation with yourself", field="user_id")

        existing = next((c for c in self.conversations if c.involves(current.id, other_user.id)), None)
        if existing is not None:
            return existing

        with remote_operation(logger, "create conversation", "Failed to start conversation. Please try again."):
            created = await self._store.insert_conversation(
                current.id,
                other_user.id,
                current.full_name,
                other_user.full_name,
            )

        self.conversations.insert(0, created)
        logger.info(f"Conversation {created.id} started between {current.id} and {other_user.id}")
        return created

    def clear(self) -> None:
        self.conversations = []
        self.messages = {}

    def _require_conversation(self, conversation_id: UUID) -> Conversation:
        conversation = next((c for c in self.conversations if c.id == conversation_id), None)
        if conversation is None:
            raise NotFoundError("Conversation", conversation_id)
        return conversation
