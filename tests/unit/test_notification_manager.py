"""
Unit tests for NotificationManager

Tests the cache, read-state updates and the lifecycle fan-out driven by
session events.
"""
import uuid
from datetime import timedelta

import pytest

from scholarlink.errors import NotFoundError, RemoteOperationError
from scholarlink.schemas.notification import NotificationType
from tests.conftest import NOW, make_session


class TestCache:
    """Test loading and querying notifications"""

    async def test_add_for_current_user_reloads(self, container, learner):
        """Test a notification for the signed-in user appears in the cache"""
        container.user_session.login(learner)
        manager = container.notifications

        await manager.add_notification(learner.id, "Hello", "World", NotificationType.SESSION_ACCEPTED)

        assert manager.unread_count(learner.id) == 1
        assert manager.notifications_for_user(learner.id)[0].title == "Hello"

    async def test_add_for_other_user_does_not_reload(self, container, learner, tutor, notification_store):
        """Test notifying someone else leaves our cache alone"""
        container.user_session.login(learner)

        await container.notifications.add_notification(tutor.id, "Hi", "There", NotificationType.SESSION_REQUEST)

        assert container.notifications.notifications == []
        assert len(notification_store.rows) == 1

    async def test_mark_as_read(self, container, learner):
        """Test marking one notification as read"""
        container.user_session.login(learner)
        manager = container.notifications
        await manager.add_notification(learner.id, "a", "a", NotificationType.SESSION_ACCEPTED)
        await manager.add_notification(learner.id, "b", "b", NotificationType.SESSION_REJECTED)

        first = manager.notifications[0]
        updated = await manager.mark_as_read(first.id)

        assert updated.is_read
        assert manager.unread_count(learner.id) == 1

    async def test_mark_unknown_as_read(self, container, learner):
        """Test marking an uncached notification raises NotFoundError"""
        container.user_session.login(learner)

        with pytest.raises(NotFoundError):
            await container.notifications.mark_as_read(uuid.uuid4())

    async def test_mark_all_as_read(self, container, learner):
        """Test bulk read clears the unread count"""
        container.user_session.login(learner)
        manager = container.notifications
        for title in ("a", "b", "c"):
            await manager.add_notification(learner.id, title, title, NotificationType.SESSION_ACCEPTED)

        await manager.mark_all_as_read(learner.id)

        assert manager.unread_count(learner.id) == 0
        assert manager.unread_for_user(learner.id) == []

    async def test_load_failure_is_remote_error(self, container, learner, notification_store):
        """Test backend failures surface as a retry message"""
        container.user_session.login(learner)
        notification_store.fail = True

        with pytest.raises(RemoteOperationError):
            await container.notifications.load_notifications()


class TestLifecycleFanOut:
    """Test exactly one notification per lifecycle event"""

    async def test_request_notifies_tutor(self, container, notification_store, learner, tutor):
        """Test booking sends one request notification to the tutor"""
        container.user_session.login(learner)

        session = await container.session_manager.create_session(
            learner, tutor, "Physics", NOW + timedelta(days=1), 60
        )
        await container.bus.drain()

        assert len(notification_store.rows) == 1
        row = notification_store.rows[0]
        assert row.user_id == tutor.id
        assert row.type == NotificationType.SESSION_REQUEST
        assert row.related_id == session.id
        assert row.message == "Ana Reyes wants to book a Physics session with you"

    @pytest.mark.parametrize(
        "action,expected_type,title",
        [
            ("accept", NotificationType.SESSION_ACCEPTED, "Session Accepted! 🎉"),
            ("reject", NotificationType.SESSION_REJECTED, "Session Request Declined"),
        ],
    )
    async def test_decision_notifies_student(
        self, container, session_store, notification_store, learner, tutor, action, expected_type, title
    ):
        """Test accept/reject each send one notification to the student"""
        session = make_session(learner, tutor)
        session_store.seed(session)
        container.user_session.login(tutor)
        await container.session_manager.load_sessions()

        await getattr(container.session_manager, action)(session.id)
        await container.bus.drain()

        assert [(n.user_id, n.type, n.title) for n in notification_store.rows] == [
            (learner.id, expected_type, title)
        ]

    async def test_notification_failure_does_not_undo_transition(
        self, container, session_store, notification_store, learner, tutor
    ):
        """Test a failed notification leaves the accepted session accepted"""
        session = make_session(learner, tutor)
        session_store.seed(session)
        container.user_session.login(tutor)
        await container.session_manager.load_sessions()
        notification_store.fail = True

        updated = await container.session_manager.accept(session.id)
        await container.bus.drain()

        assert updated.is_accepted
        assert container.session_manager.get(session.id).is_accepted
        assert notification_store.rows == []

    async def test_unknown_recipient(self, container):
        """Test notifying an unknown email raises NotFoundError"""
        with pytest.raises(NotFoundError):
            await container.notifications.notify_tutor_of_new_request(
                "nobody@example.com", "Ana", "Physics", uuid.uuid4()
            )
