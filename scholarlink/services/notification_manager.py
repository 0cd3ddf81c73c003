"""
Notification Manager

Caches the signed-in user's in-app notifications and sends the session
lifecycle notifications (request, acceptance, rejection). Sending resolves
the recipient by email and then creates the row through the backend's
privileged procedure: two round trips per notification.
"""
import logging
from typing import List, Optional
from uuid import UUID

from scholarlink.errors import NotFoundError
from scholarlink.schemas.notification import Notification, NotificationType
from scholarlink.services.events import EventBus, SessionAccepted, SessionRejected, SessionRequested
from scholarlink.stores.notification_store import NotificationStore
from scholarlink.stores.profile_store import ProfileStore
from scholarlink.utils import remote_operation

logger = logging.getLogger(__name__)


class NotificationManager:
    def __init__(self, store: NotificationStore, profiles: ProfileStore, user_session):
        self._store = store
        self._profiles = profiles
        self._user_session = user_session
        self.notifications: List[Notification] = []

    async def load_notifications(self) -> List[Notification]:
        user = self._user_session.current_user
        if user is None:
            return []

        with remote_operation(logger, "load notifications", "Failed to load notifications. Please try again."):
            self.notifications = await self._store.list_for(user.id)
        return list(self.notifications)

    async def add_notification(
        self,
        user_id: UUID,
        title: str,
        message: str,
        type: NotificationType,
        related_id: Optional[UUID] = None,
    ) -> None:
        """Create a notification for any user; reloads the cache when it is for us."""
        with remote_operation(logger, "add notification", "Failed to send notification. Please try again."):
            await self._store.create(user_id, title, message, type, related_id)

        logger.info(f"Notification '{type.value}' created for user {user_id}")

        current = self._user_session.current_user
        if current is not None and current.id == user_id:
            await self.load_notifications()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def notifications_for_user(self, user_id: UUID) -> List[Notification]:
        return [n for n in self.notifications if n.user_id == user_id]

    def unread_for_user(self, user_id: UUID) -> List[Notification]:
        return [n for n in self.notifications_for_user(user_id) if not n.is_read]

    def unread_count(self, user_id: UUID) -> int:
        return len(self.unread_for_user(user_id))

    # ------------------------------------------------------------------
    # Read state
    # ------------------------------------------------------------------

    async def mark_as_read(self, notification_id: UUID) -> Notification:
        index = next((i for i, n in enumerate(self.notifications) if n.id == notification_id), None)
        if index is None:
            raise NotFoundError("Notification", notification_id)

        with remote_operation(logger, "mark notification as read", "Failed to update notification. Please try again."):
            await self._store.mark_read(notification_id)

        self.notifications[index] = self.notifications[index].model_copy(update={"is_read": True})
        return self.notifications[index]

    async def mark_all_as_read(self, user_id: UUID) -> None:
        with remote_operation(logger, "mark all notifications as read", "Failed to update notifications. Please try again."):
            await self._store.mark_all_read(user_id)

        self.notifications = [
            n.model_copy(update={"is_read": True}) if n.user_id == user_id else n
            for n in self.notifications
        ]

    # ------------------------------------------------------------------
    # Convenience senders
    # ------------------------------------------------------------------

    async def _notify_by_email(
        self,
        email: str,
        title: str,
        message: str,
        type: NotificationType,
        related_id: UUID,
    ) -> None:
        with remote_operation(logger, f"resolve {email}", "Failed to send notification. Please try again."):
            recipient = await self._profiles.get_by_email(email)
        if recipient is None:
            raise NotFoundError("Profile", email)

        await self.add_notification(recipient.id, title, message, type, related_id)

    async def notify_tutor_of_new_request(self, tutor_email: str, student_name: str, subject: str, session_id: UUID) -> None:
        await self._notify_by_email(
            tutor_email,
            "New Session Request",
            f"{student_name} wants to book a {subject} session with you",
            NotificationType.SESSION_REQUEST,
            session_id,
        )

    async def notify_student_of_acceptance(self, student_email: str, tutor_name: str, subject: str, session_id: UUID) -> None:
        await self._notify_by_email(
            student_email,
            "Session Accepted! 🎉",
            f"{tutor_name} accepted your {subject} session request",
            NotificationType.SESSION_ACCEPTED,
            session_id,
        )

    async def notify_student_of_rejection(self, student_email: str, tutor_name: str, subject: str, session_id: UUID) -> None:
        await self._notify_by_email(
            student_email,
            "Session Request Declined",
            f"{tutor_name} declined your {subject} session request",
            NotificationType.SESSION_REJECTED,
            session_id,
        )

    def clear(self) -> None:
        self.notifications = []


def register_notification_listeners(bus: EventBus, manager: NotificationManager) -> None:
    """
    Subscribe notification fan-out to session lifecycle events.

    Exactly one notification per event: the tutor on a new request, the
    student on acceptance or rejection.
    """

    async def on_requested(event: SessionRequested):
        s = event.session
        await manager.notify_tutor_of_new_request(s.tutor_email, s.student_name, s.subject, s.id)

    async def on_accepted(event: SessionAccepted):
        s = event.session
        await manager.notify_student_of_acceptance(s.student_email, s.tutor_name, s.subject, s.id)

    async def on_rejected(event: SessionRejected):
        s = event.session
        await manager.notify_student_of_rejection(s.student_email, s.tutor_name, s.subject, s.id)

    bus.subscribe(SessionRequested, on_requested)
    bus.subscribe(SessionAccepted, on_accepted)
    bus.subscribe(SessionRejected, on_rejected)

    logger.info("Notification event listeners registered")
