"""SQLAlchemy ORM mirrors of the remote backend tables"""
from scholarlink.models.profile import ProfileRecord
from scholarlink.models.session import SessionRecord
from scholarlink.models.notification import NotificationRecord
from scholarlink.models.conversation import ConversationRecord, MessageRecord

__all__ = [
    "ProfileRecord",
    "SessionRecord",
    "NotificationRecord",
    "ConversationRecord",
    "MessageRecord",
]
