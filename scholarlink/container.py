"""
Application container

Builds every service once and wires them together: notification fan-out and
reminder resync subscribe to session events, and signing out clears every
per-user cache.
"""
import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from cryptography.fernet import Fernet

from scholarlink.database import init_redis
from scholarlink.services.admin import AdminService
from scholarlink.services.booking import BookingService
from scholarlink.services.events import EventBus, SessionsChanged
from scholarlink.services.local_notifications import LocalReminderScheduler
from scholarlink.services.messaging_manager import MessagingManager
from scholarlink.services.notification_manager import NotificationManager, register_notification_listeners
from scholarlink.services.payment_store import PaymentDetailsStore, get_fernet
from scholarlink.services.profile_service import ProfileService
from scholarlink.services.reminder_scheduler import SessionReminderScheduler
from scholarlink.services.session_manager import SessionLifecycleManager
from scholarlink.services.tutor_directory import TutorDirectory
from scholarlink.services.user_session import UserSession
from scholarlink.services.verification import TutorVerificationService
from scholarlink.stores.auth_client import AuthClient
from scholarlink.stores.conversation_store import ConversationStore
from scholarlink.stores.kv_store import KeyValueStore
from scholarlink.stores.notification_store import NotificationStore
from scholarlink.stores.object_storage import VerificationStorage
from scholarlink.stores.profile_store import ProfileStore
from scholarlink.stores.session_store import SessionStore
from scholarlink.utils import utc_now

logger = logging.getLogger(__name__)


class AppContainer:
    def __init__(
        self,
        kv: KeyValueStore,
        session_store,
        notification_store,
        profile_store,
        conversation_store,
        auth,
        storage,
        fernet: Fernet,
        platform: Optional[LocalReminderScheduler] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.kv = kv
        self.bus = EventBus()
        self.platform = platform or LocalReminderScheduler(kv)

        self.user_session = UserSession(auth, profile_store, kv)
        self.session_manager = SessionLifecycleManager(session_store, self.bus, self.user_session, clock)
        self.notifications = NotificationManager(notification_store, profile_store, self.user_session)
        self.messaging = MessagingManager(conversation_store, self.user_session)
        self.payments = PaymentDetailsStore(kv, fernet, clock)
        self.reminders = SessionReminderScheduler(self.platform, kv, clock)
        self.booking = BookingService(self.session_manager, profile_store, self.payments, self.user_session)
        self.tutors = TutorDirectory(profile_store)
        self.profiles = ProfileService(profile_store, self.user_session)
        self.verification = TutorVerificationService(storage, profile_store, self.user_session)
        self.admin = AdminService(profile_store, self.user_session)

        register_notification_listeners(self.bus, self.notifications)
        self.bus.subscribe(SessionsChanged, self.reminders.on_sessions_changed)
        self.user_session.add_sign_out_listener(self._clear_user_state)

    @classmethod
    async def create(cls) -> "AppContainer":
        """Container backed by the configured database, Redis, auth service and storage."""
        redis = await init_redis()
        return cls(
            kv=KeyValueStore(redis),
            session_store=SessionStore(),
            notification_store=NotificationStore(),
            profile_store=ProfileStore(),
            conversation_store=ConversationStore(),
            auth=AuthClient(),
            storage=VerificationStorage(),
            fernet=get_fernet(),
        )

    async def start(self) -> None:
        """Start reminder delivery, ask for notification permission, restore the session."""
        self.platform.start()
        await self.platform.request_authorization_if_needed()

        user = await self.user_session.check_auth_status()
        if user is not None:
            logger.info(f"Restored session for {user.id}")
            await self.refresh_all()

    async def refresh_all(self) -> None:
        """Reload the per-user caches concurrently."""
        await asyncio.gather(
            self.session_manager.load_sessions(),
            self.notifications.load_notifications(),
            self.messaging.load_conversations(),
            self.payments.load(),
        )

    async def shutdown(self) -> None:
        await self.bus.drain()
        self.platform.stop()

    async def _clear_user_state(self) -> None:
        # Publishes an empty SessionsChanged, which cancels this device's reminders
        self.session_manager.clear()
        self.notifications.clear()
        self.messaging.clear()
        self.admin.users = []
        await self.bus.drain()
