"""
Shared fixtures and in-memory collaborators.

The fakes mirror the public methods of the real stores and clients so the
services run unchanged against them, without Postgres, Redis, the auth
service or object storage.
"""
import json
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set

import pytest
from cryptography.fernet import Fernet

from scholarlink.container import AppContainer
from scholarlink.errors import AuthenticationError, ReminderSchedulingError
from scholarlink.schemas.messaging import Conversation, Message
from scholarlink.schemas.notification import Notification, NotificationType
from scholarlink.schemas.payment import BillingAddress, PaymentDetails
from scholarlink.schemas.session import NewSession, Session
from scholarlink.schemas.user import UserProfile, UserRole
from scholarlink.services.local_notifications import AuthorizationStatus
from scholarlink.stores.auth_client import AuthSession

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


def make_profile(
    role: UserRole = UserRole.LEARNER,
    first_name: str = "Ana",
    last_name: str = "Reyes",
    email: Optional[str] = None,
    **overrides,
) -> UserProfile:
    fields = {
        "id": uuid.uuid4(),
        "email": email or f"{first_name.lower()}.{last_name.lower()}@example.com",
        "username": first_name.lower(),
        "first_name": first_name,
        "last_name": last_name,
        "user_role": role,
        "is_profile_complete": True,
        "created_at": NOW - timedelta(days=30),
        "updated_at": NOW - timedelta(days=30),
    }
    if role == UserRole.TUTOR:
        fields.update(selected_subjects=["Mathematics", "Physics"], hourly_rate=Decimal("500.00"), years_experience=3)
    fields.update(overrides)
    return UserProfile(**fields)


def valid_details(**overrides) -> PaymentDetails:
    fields = {
        "cardholder_name": "Ana Reyes",
        "card_number": "4111 1111 1111 1111",
        "expiry_month": "3",
        "expiry_year": "2028",
        "cvv": "123",
        "phone_number": "+63 917 555 0101",
        "email": "ana.reyes@example.com",
        "billing_address": BillingAddress(
            street="12 Mabini St", city="Quezon City", province="Metro Manila", postal_code="1100"
        ),
    }
    fields.update(overrides)
    return PaymentDetails(**fields)


def make_session(student: UserProfile, tutor: UserProfile, **overrides) -> Session:
    fields = {
        "id": uuid.uuid4(),
        "student_id": student.id,
        "tutor_id": tutor.id,
        "student_name": student.full_name,
        "student_email": student.email,
        "tutor_name": tutor.full_name,
        "tutor_email": tutor.email,
        "subject": "Mathematics",
        "session_date": NOW + timedelta(days=3),
        "duration": 60,
        "hourly_rate": tutor.hourly_rate or Decimal("0"),
        "created_at": NOW - timedelta(hours=1),
        "updated_at": NOW - timedelta(hours=1),
    }
    fields.update(overrides)
    return Session(**fields)


# ----------------------------------------------------------------------
# Fakes
# ----------------------------------------------------------------------


class FakeKV:
    def __init__(self):
        self.data: Dict[str, str] = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value

    async def get_json(self, key):
        raw = self.data.get(key)
        return json.loads(raw) if raw is not None else None

    async def set_json(self, key, value):
        self.data[key] = json.dumps(value)

    async def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)


class FakeSessionStore:
    def __init__(self):
        self.rows: Dict[uuid.UUID, Session] = {}
        self.updates: List[tuple] = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise ConnectionError("database unavailable")

    def seed(self, *sessions: Session):
        for session in sessions:
            self.rows[session.id] = session

    async def list_sessions_for(self, user_id):
        self._check()
        rows = [s for s in self.rows.values() if user_id in (s.student_id, s.tutor_id)]
        return sorted(rows, key=lambda s: s.created_at, reverse=True)

    async def insert(self, new_session: NewSession):
        self._check()
        session = Session(**new_session.model_dump(), id=uuid.uuid4(), created_at=NOW, updated_at=NOW)
        self.rows[session.id] = session
        return session

    async def update(self, session_id, fields):
        self._check()
        self.updates.append((session_id, dict(fields)))
        self.rows[session_id] = Session.model_validate({**self.rows[session_id].model_dump(), **fields})


class FakeNotificationStore:
    def __init__(self):
        self.rows: List[Notification] = []
        self.fail = False

    async def list_for(self, user_id):
        if self.fail:
            raise ConnectionError("database unavailable")
        return [n for n in reversed(self.rows) if n.user_id == user_id]

    async def create(self, user_id, title, message, type: NotificationType, related_id):
        if self.fail:
            raise ConnectionError("database unavailable")
        self.rows.append(
            Notification(
                id=uuid.uuid4(),
                user_id=user_id,
                title=title,
                message=message,
                type=type,
                related_id=related_id,
                created_at=NOW,
            )
        )

    async def mark_read(self, notification_id):
        self.rows = [n.model_copy(update={"is_read": True}) if n.id == notification_id else n for n in self.rows]

    async def mark_all_read(self, user_id):
        self.rows = [n.model_copy(update={"is_read": True}) if n.user_id == user_id else n for n in self.rows]


class FakeProfileStore:
    def __init__(self, *profiles: UserProfile):
        self.rows: Dict[uuid.UUID, UserProfile] = {p.id: p for p in profiles}
        self.fail = False

    def add(self, *profiles: UserProfile):
        for profile in profiles:
            self.rows[profile.id] = profile

    def _check(self):
        if self.fail:
            raise ConnectionError("database unavailable")

    async def get(self, user_id):
        self._check()
        return self.rows.get(user_id)

    async def get_by_email(self, email):
        self._check()
        return next((p for p in self.rows.values() if p.email == email), None)

    async def insert(self, fields):
        self._check()
        profile = UserProfile.model_validate({"created_at": NOW, "updated_at": NOW, **fields})
        self.rows[profile.id] = profile
        return profile

    async def list_all(self):
        self._check()
        return list(self.rows.values())

    async def list_tutors(self, complete_only=True):
        self._check()
        return [
            p for p in self.rows.values()
            if p.user_role == UserRole.TUTOR and (p.is_profile_complete or not complete_only)
        ]

    async def update(self, user_id, fields):
        self._check()
        current = self.rows[user_id].model_dump()
        current.update(fields)
        self.rows[user_id] = UserProfile.model_validate(current)

    async def delete(self, user_id):
        self._check()
        self.rows.pop(user_id, None)


class FakeConversationStore:
    def __init__(self):
        self.conversations: Dict[uuid.UUID, Conversation] = {}
        self.messages: List[Message] = []
        self.inserted_conversations = 0
        self.fail = False
        self.fail_last_message = False

    async def list_conversations_for(self, user_id):
        return [c for c in self.conversations.values() if user_id in (c.user1_id, c.user2_id)]

    async def insert_conversation(self, user1_id, user2_id, user1_name, user2_name):
        if self.fail:
            raise ConnectionError("database unavailable")
        conversation = Conversation(
            id=uuid.uuid4(),
            user1_id=user1_id,
            user2_id=user2_id,
            user1_name=user1_name,
            user2_name=user2_name,
            created_at=NOW,
        )
        self.conversations[conversation.id] = conversation
        self.inserted_conversations += 1
        return conversation

    async def list_messages(self, conversation_id):
        return [m for m in self.messages if m.conversation_id == conversation_id]

    async def insert_message(self, conversation_id, sender_id, sender_name, content):
        if self.fail:
            raise ConnectionError("database unavailable")
        message = Message(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            sender_name=sender_name,
            content=content,
            created_at=NOW + timedelta(seconds=len(self.messages)),
        )
        self.messages.append(message)
        return message

    async def update_last_message(self, conversation_id, content, sent_at):
        if self.fail_last_message:
            raise ConnectionError("database unavailable")
        self.conversations[conversation_id] = self.conversations[conversation_id].model_copy(
            update={"last_message": content, "last_message_time": sent_at}
        )


class FakeAuth:
    """Accounts keyed by email; tokens are issued per sign-in."""

    def __init__(self):
        self.accounts: Dict[str, tuple] = {}
        self.tokens: Dict[str, uuid.UUID] = {}
        self.signed_out: List[str] = []

    def add_account(self, email: str, password: str, user_id: uuid.UUID):
        self.accounts[email] = (password, user_id)

    def _issue(self, user_id) -> AuthSession:
        token = f"token-{uuid.uuid4()}"
        self.tokens[token] = user_id
        return AuthSession(user_id=user_id, access_token=token, refresh_token="refresh")

    async def sign_in_with_password(self, email, password):
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthenticationError("Invalid email or password")
        return self._issue(account[1])

    async def sign_up(self, email, password):
        if email in self.accounts:
            raise AuthenticationError("User already registered")
        user_id = uuid.uuid4()
        self.add_account(email, password, user_id)
        return self._issue(user_id)

    async def get_user_id(self, access_token):
        if access_token not in self.tokens:
            raise AuthenticationError("Authentication failed")
        return self.tokens[access_token]

    async def sign_out(self, access_token):
        self.signed_out.append(access_token)
        self.tokens.pop(access_token, None)


class FakeReminderPlatform:
    """Records schedule/cancel calls; ids in ``fail_ids`` refuse to schedule."""

    def __init__(self):
        self.pending: Dict[str, tuple] = {}
        self.scheduled: List[str] = []
        self.cancelled: List[str] = []
        self.fail_ids: Set[str] = set()
        self.running = False
        self.status = AuthorizationStatus.GRANTED

    def start(self):
        self.running = True

    def stop(self):
        self.running = False

    async def authorization_status(self):
        return self.status

    async def request_authorization_if_needed(self):
        return self.status

    async def schedule(self, reminder_id, fire_at, title, body):
        if reminder_id in self.fail_ids:
            raise ReminderSchedulingError("Could not schedule reminder", {"reminder_id": reminder_id})
        self.scheduled.append(reminder_id)
        self.pending[reminder_id] = (fire_at, title, body)

    async def cancel(self, reminder_ids):
        for reminder_id in reminder_ids:
            self.cancelled.append(reminder_id)
            self.pending.pop(reminder_id, None)

    async def get_pending_ids(self):
        return set(self.pending)

    def reset_calls(self):
        self.scheduled = []
        self.cancelled = []


class FakeStorage:
    def __init__(self):
        self.uploads: List[Dict[str, Any]] = []

    def upload_id_image(self, data, tutor_id):
        key = f"id-images/{tutor_id}-{uuid.uuid4()}.jpg"
        self.uploads.append({"key": key, "size": len(data)})
        return f"https://storage.test/tutor-verifications/{key}"

    def upload_credential_file(self, data, tutor_id, file_extension, mime_type):
        key = f"credentials/{tutor_id}-{uuid.uuid4()}.{file_extension}"
        self.uploads.append({"key": key, "size": len(data), "mime_type": mime_type})
        return f"https://storage.test/tutor-verifications/{key}"


class FakeUserSession:
    """Minimal stand-in for UserSession when a test only needs current_user."""

    def __init__(self, user: Optional[UserProfile] = None):
        self.current_user = user

    def require_user(self):
        from scholarlink.errors import NotSignedInError

        if self.current_user is None:
            raise NotSignedInError()
        return self.current_user

    def require_role(self, *roles):
        from scholarlink.errors import PermissionDeniedError

        user = self.require_user()
        if user.user_role not in roles:
            raise PermissionDeniedError("Not allowed")
        return user

    async def fetch_user_profile(self, user_id):
        return self.current_user


# ----------------------------------------------------------------------
# Fixtures
# ----------------------------------------------------------------------


@pytest.fixture
def learner():
    return make_profile(UserRole.LEARNER, "Ana", "Reyes")


@pytest.fixture
def tutor():
    return make_profile(UserRole.TUTOR, "Ben", "Cruz")


@pytest.fixture
def admin_user():
    return make_profile(UserRole.ADMIN, "Ada", "Admin")


@pytest.fixture
def kv():
    return FakeKV()


@pytest.fixture
def fernet():
    return Fernet(Fernet.generate_key())


@pytest.fixture
def profile_store(learner, tutor, admin_user):
    return FakeProfileStore(learner, tutor, admin_user)


@pytest.fixture
def session_store():
    return FakeSessionStore()


@pytest.fixture
def notification_store():
    return FakeNotificationStore()


@pytest.fixture
def conversation_store():
    return FakeConversationStore()


@pytest.fixture
def auth(learner, tutor, admin_user):
    fake = FakeAuth()
    for profile in (learner, tutor, admin_user):
        fake.add_account(profile.email, "secret123", profile.id)
    return fake


@pytest.fixture
def platform():
    return FakeReminderPlatform()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def container(kv, session_store, notification_store, profile_store, conversation_store, auth, storage, fernet, platform):
    return AppContainer(
        kv=kv,
        session_store=session_store,
        notification_store=notification_store,
        profile_store=profile_store,
        conversation_store=conversation_store,
        auth=auth,
        storage=storage,
        fernet=fernet,
        platform=platform,
        clock=fixed_clock,
    )
