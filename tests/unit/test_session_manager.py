"""
Unit tests for SessionLifecycleManager

Tests booking validation, cost calculation, state transitions and the
events published for each transition.
"""
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from scholarlink.errors import (
    AlreadyRatedError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    RemoteOperationError,
    ValidationError,
)
from scholarlink.schemas.session import SessionStatus, calculate_total_cost
from scholarlink.schemas.user import UserRole
from scholarlink.services.events import SessionAccepted, SessionRequested, SessionsChanged
from tests.conftest import NOW, make_profile, make_session


class TestTotalCost:
    """Cost is hourly rate x duration / 60, to the cent"""

    def test_ninety_minutes_at_600(self):
        """Test 90 minutes at 600/hour costs exactly 900"""
        assert calculate_total_cost(Decimal("600"), 90) == Decimal("900.00")

    def test_rounds_half_up_to_cent(self):
        """Test fractional cents round half up"""
        # 333.33 * 50 / 60 = 277.775
        assert calculate_total_cost(Decimal("333.33"), 50) == Decimal("277.78")

    def test_session_exposes_total_cost(self, learner, tutor):
        """Test Session.total_cost uses the snapshot rate"""
        session = make_session(learner, tutor, duration=45, hourly_rate=Decimal("500"))
        assert session.total_cost == Decimal("375.00")


class TestCreateSession:
    """Test booking validation and snapshots"""

    async def test_end_to_end_booking(self, container, learner, tutor):
        """Test 90 minutes at 600/hour books a pending 900 session"""
        container.user_session.login(learner)
        rated_tutor = tutor.model_copy(update={"hourly_rate": Decimal("600")})

        session = await container.session_manager.create_session(
            learner, rated_tutor, "Physics", NOW + timedelta(days=2), 90, "  Exam prep  "
        )

        assert session.total_cost == Decimal("900.00")
        assert session.status == SessionStatus.PENDING
        assert session.is_completed is False
        assert session.rating is None
        assert session.message == "Exam prep"
        assert container.session_manager.sessions[0].id == session.id

    async def test_snapshots_names_and_emails(self, container, learner, tutor):
        """Test student/tutor names and emails are copied at booking time"""
        session = await container.session_manager.create_session(
            learner, tutor, "Mathematics", NOW + timedelta(days=1), 60
        )

        assert session.student_name == "Ana Reyes"
        assert session.student_email == learner.email
        assert session.tutor_name == "Ben Cruz"
        assert session.tutor_email == tutor.email
        assert session.hourly_rate == Decimal("500.00")

    async def test_subject_must_be_taught_by_tutor(self, container, learner, tutor):
        """Test a subject outside tutor.selected_subjects fails validation"""
        with pytest.raises(ValidationError) as exc_info:
            await container.session_manager.create_session(learner, tutor, "Music", NOW + timedelta(days=1), 60)

        assert exc_info.value.field == "subject"
        assert container.session_manager.sessions == []

    @pytest.mark.parametrize("subject", ["", "   "])
    async def test_subject_required(self, container, learner, tutor, subject):
        """Test an empty subject fails validation"""
        with pytest.raises(ValidationError):
            await container.session_manager.create_session(learner, tutor, subject, NOW + timedelta(days=1), 60)

    async def test_minimum_duration(self, container, learner, tutor):
        """Test durations under 30 minutes are rejected"""
        with pytest.raises(ValidationError, match="at least 30 minutes"):
            await container.session_manager.create_session(learner, tutor, "Physics", NOW + timedelta(days=1), 29)

    async def test_date_must_be_in_future(self, container, learner, tutor):
        """Test a past or current date is rejected"""
        with pytest.raises(ValidationError) as exc_info:
            await container.session_manager.create_session(learner, tutor, "Physics", NOW, 60)
        assert exc_info.value.field == "session_date"

    async def test_naive_date_rejected(self, container, learner, tutor):
        """Test session dates must carry a timezone"""
        with pytest.raises(ValidationError):
            await container.session_manager.create_session(
                learner, tutor, "Physics", datetime(2030, 1, 1, 10, 0), 60
            )

    async def test_cannot_book_non_tutor(self, container, learner):
        """Test booking another learner is rejected"""
        other = make_profile(UserRole.LEARNER, "Cara", "Lim", selected_subjects=["Physics"])
        with pytest.raises(ValidationError):
            await container.session_manager.create_session(learner, other, "Physics", NOW + timedelta(days=1), 60)

    async def test_remote_failure_leaves_cache_untouched(self, container, session_store, learner, tutor):
        """Test a failed insert surfaces a retry message and caches nothing"""
        session_store.fail = True

        with pytest.raises(RemoteOperationError, match="Please try again"):
            await container.session_manager.create_session(learner, tutor, "Physics", NOW + timedelta(days=1), 60)

        assert container.session_manager.sessions == []

    async def test_publishes_requested_event(self, container, learner, tutor):
        """Test booking publishes SessionRequested and SessionsChanged"""
        seen = []

        async def record(event):
            seen.append(type(event))

        container.bus.subscribe(SessionRequested, record)
        container.bus.subscribe(SessionsChanged, record)

        await container.session_manager.create_session(learner, tutor, "Physics", NOW + timedelta(days=1), 60)
        await container.bus.drain()

        assert SessionRequested in seen
        assert SessionsChanged in seen


class TestTransitions:
    """Test accept, reject, mark_complete and rate guards"""

    @pytest.fixture
    async def pending(self, container, session_store, learner, tutor):
        session = make_session(learner, tutor)
        session_store.seed(session)
        container.user_session.login(tutor)
        await container.session_manager.load_sessions()
        return session

    async def test_accept_pending(self, container, session_store, pending):
        """Test accept moves pending to accepted without completing it"""
        updated = await container.session_manager.accept(pending.id)

        assert updated.status == SessionStatus.ACCEPTED
        assert updated.is_completed is False
        assert container.session_manager.get(pending.id).is_accepted
        assert session_store.rows[pending.id].status is SessionStatus.ACCEPTED

    async def test_reject_pending(self, container, pending):
        """Test reject moves pending to rejected"""
        updated = await container.session_manager.reject(pending.id)

        assert updated.status == SessionStatus.REJECTED
        assert updated.is_terminal

    @pytest.mark.parametrize("first", ["accept", "reject"])
    @pytest.mark.parametrize("second", ["accept", "reject"])
    async def test_accept_reject_only_from_pending(self, container, session_store, pending, first, second):
        """Test a second accept/reject raises and leaves state unchanged"""
        manager = container.session_manager
        await getattr(manager, first)(pending.id)
        before = manager.get(pending.id)
        writes = len(session_store.updates)

        with pytest.raises(InvalidTransitionError):
            await getattr(manager, second)(pending.id)

        assert manager.get(pending.id) == before
        assert len(session_store.updates) == writes

    async def test_only_tutor_can_accept(self, container, pending, learner):
        """Test the student cannot accept their own request"""
        container.user_session.login(learner)

        with pytest.raises(PermissionDeniedError):
            await container.session_manager.accept(pending.id)

    async def test_unknown_session(self, container, pending):
        """Test transitions on an uncached session raise NotFoundError"""
        with pytest.raises(NotFoundError):
            await container.session_manager.accept(uuid.uuid4())

    async def test_mark_complete_requires_accepted(self, container, pending):
        """Test a pending session cannot be completed"""
        with pytest.raises(InvalidTransitionError):
            await container.session_manager.mark_complete(pending.id)

    async def test_mark_complete_accepted(self, container, pending):
        """Test completing an accepted session keeps its status"""
        await container.session_manager.accept(pending.id)
        updated = await container.session_manager.mark_complete(pending.id)

        assert updated.is_completed is True
        assert updated.status == SessionStatus.ACCEPTED

        with pytest.raises(InvalidTransitionError):
            await container.session_manager.mark_complete(pending.id)

    async def test_accept_then_rate(self, container, pending, learner):
        """Test rate(5, 'great') completes and rates an accepted session"""
        await container.session_manager.accept(pending.id)
        container.user_session.login(learner)

        updated = await container.session_manager.rate(pending.id, 5, "great")

        assert updated.is_completed is True
        assert updated.rating == 5
        assert updated.review == "great"
        assert updated.state_label == "rated"

    async def test_rate_is_single_use(self, container, pending, learner):
        """Test a second rating raises AlreadyRatedError and keeps the first"""
        await container.session_manager.accept(pending.id)
        container.user_session.login(learner)
        await container.session_manager.rate(pending.id, 4, "good")

        with pytest.raises(AlreadyRatedError):
            await container.session_manager.rate(pending.id, 1, "changed my mind")

        session = container.session_manager.get(pending.id)
        assert session.rating == 4
        assert session.review == "good"

    async def test_rate_requires_accepted(self, container, pending, learner):
        """Test a pending session cannot be rated"""
        container.user_session.login(learner)

        with pytest.raises(InvalidTransitionError):
            await container.session_manager.rate(pending.id, 5)

    @pytest.mark.parametrize("rating", [0, 6, -1, True])
    async def test_rating_range(self, container, pending, rating):
        """Test ratings outside 1-5 are validation errors"""
        with pytest.raises(ValidationError):
            await container.session_manager.rate(pending.id, rating)

    async def test_failed_write_keeps_cache(self, container, session_store, pending):
        """Test a failed remote update leaves the cached session unchanged"""
        session_store.fail = True

        with pytest.raises(RemoteOperationError):
            await container.session_manager.accept(pending.id)

        assert container.session_manager.get(pending.id).is_pending

    async def test_accept_publishes_event(self, container, pending):
        """Test accept publishes SessionAccepted with the updated session"""
        events = []

        async def record(event):
            events.append(event)

        container.bus.subscribe(SessionAccepted, record)
        await container.session_manager.accept(pending.id)
        await container.bus.drain()

        assert len(events) == 1
        assert events[0].session.is_accepted


class TestQueries:
    """Test the in-memory filters"""

    async def test_filters(self, container, session_store, learner, tutor):
        """Test student/tutor filters over the cached sessions"""
        accepted = make_session(learner, tutor, status=SessionStatus.ACCEPTED)
        pending = make_session(learner, tutor)
        session_store.seed(accepted, pending)
        container.user_session.login(learner)
        await container.session_manager.load_sessions()

        manager = container.session_manager
        assert len(manager.sessions_for_student(learner.email)) == 2
        assert len(manager.sessions_for_tutor(tutor.email)) == 2
        assert [s.id for s in manager.pending_for_tutor(tutor.email)] == [pending.id]
        assert [s.id for s in manager.accepted_for_student(learner.email)] == [accepted.id]

    async def test_load_when_signed_out(self, container):
        """Test loading without a user returns nothing"""
        assert await container.session_manager.load_sessions() == []
