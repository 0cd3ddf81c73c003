"""
Session Lifecycle Manager

Owns the signed-in user's cached copy of the remote sessions table and the
booking state machine:

    create ──> pending ──accept──> accepted ──mark_complete──> completed
                  │                    │
                  └──reject──> rejected└──rate──> completed + rated

Rejected, completed-and-rated sessions are terminal. Every mutation writes to
the remote store first and only updates the cache once the write succeeded.
Two devices racing on the same session resolve as last-write-wins at the
remote store; the losing device's cache stays stale until the next load.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional
from uuid import UUID

from scholarlink.errors import (
    AlreadyRatedError,
    InvalidTransitionError,
    NotFoundError,
    NotSignedInError,
    PermissionDeniedError,
    ValidationError,
)
from scholarlink.schemas.session import MIN_DURATION_MINUTES, NewSession, Session, SessionStatus
from scholarlink.schemas.user import UserProfile, UserRole
from scholarlink.services.events import (
    EventBus,
    SessionAccepted,
    SessionCompleted,
    SessionRated,
    SessionRejected,
    SessionRequested,
    SessionsChanged,
)
from scholarlink.stores.session_store import SessionStore
from scholarlink.utils import remote_operation, utc_now

logger = logging.getLogger(__name__)


class SessionLifecycleManager:
    """Creates sessions and applies tutor/student transitions to them."""

    def __init__(
        self,
        store: SessionStore,
        bus: EventBus,
        user_session,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._bus = bus
        self._user_session = user_session
        self._clock = clock
        self.sessions: List[Session] = []

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_sessions(self) -> List[Session]:
        """Replace the cache with every session visible to the signed-in user."""
        user = self._user_session.current_user
        if user is None:
            return []

        with remote_operation(logger, "load sessions", "Failed to load sessions. Please try again."):
            fetched = await self._store.list_sessions_for(user.id)

        self.sessions = fetched
        logger.info(f"Loaded {len(fetched)} sessions for user {user.id}")
        self._publish_change()
        return list(self.sessions)

    def clear(self) -> None:
        self.sessions = []
        self._publish_change()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def create_session(
        self,
        student: UserProfile,
        tutor: UserProfile,
        subject: str,
        session_date: datetime,
        duration: int,
        message: str = "",
    ) -> Session:
        """
        Book a session with a tutor.

        Names, emails and the hourly rate are copied from the two profiles as
        they are right now and never refreshed afterwards.

        Raises:
            ValidationError: If the booking form is invalid
            RemoteOperationError: If the insert fails
        """
        self._validate_booking(student, tutor, subject, session_date, duration)

        new_session = NewSession(
            student_id=student.id,
            tutor_id=tutor.id,
            student_name=student.full_name,
            student_email=student.email,
            tutor_name=tutor.full_name,
            tutor_email=tutor.email,
            subject=subject,
            session_date=session_date,
            duration=duration,
            message=message.strip(),
            hourly_rate=tutor.hourly_rate if tutor.hourly_rate is not None else Decimal("0"),
        )

        with remote_operation(logger, "create session", "Failed to book session. Please try again."):
            created = await self._store.insert(new_session)

        self.sessions.insert(0, created)
        logger.info(f"Session {created.id} requested: {subject} with {tutor.email} for {duration} minutes")

        self._bus.publish(SessionRequested(created))
        self._publish_change()
        return created

    async def accept(self, session_id: UUID) -> Session:
        """Tutor accepts a pending request."""
        session = self._require(session_id)
        self._require_participant(session, session.tutor_id, "accept")
        if not session.is_pending:
            raise InvalidTransitionError(session.id, "accept", session.state_label)

        with remote_operation(logger, "accept session", "Failed to accept session. Please try again."):
            await self._store.update(session.id, {"status": SessionStatus.ACCEPTED.value})

        updated = self._apply(session.id, status=SessionStatus.ACCEPTED)
        logger.info(f"Session {session.id} accepted")
        self._bus.publish(SessionAccepted(updated))
        self._publish_change()
        return updated

    async def reject(self, session_id: UUID) -> Session:
        """Tutor declines a pending request."""
        session = self._require(session_id)
        self._require_participant(session, session.tutor_id, "reject")
        if not session.is_pending:
            raise InvalidTransitionError(session.id, "reject", session.state_label)

        with remote_operation(logger, "reject session", "Failed to reject session. Please try again."):
            await self._store.update(session.id, {"status": SessionStatus.REJECTED.value})

        updated = self._apply(session.id, status=SessionStatus.REJECTED)
        logger.info(f"Session {session.id} rejected")
        self._bus.publish(SessionRejected(updated))
        self._publish_change()
        return updated

    async def mark_complete(self, session_id: UUID) -> Session:
        """Tutor marks an accepted session as held."""
        session = self._require(session_id)
        self._require_participant(session, session.tutor_id, "complete")
        if not session.is_accepted or session.is_completed:
            raise InvalidTransitionError(session.id, "complete", session.state_label)

        with remote_operation(logger, "mark session as complete", "Failed to mark session as complete. Please try again."):
            await self._store.update(session.id, {"is_completed": True})

        updated = self._apply(session.id, is_completed=True)
        logger.info(f"Session {session.id} marked complete")
        self._bus.publish(SessionCompleted(updated))
        self._publish_change()
        return updated

    async def rate(self, session_id: UUID, rating: int, review: Optional[str] = None) -> Session:
        """
        Student rates an accepted session. Rating also completes it.

        A session can be rated once; the first rating and review are kept.

        Raises:
            ValidationError: If rating is outside 1-5
            InvalidTransitionError: If the session was never accepted
            AlreadyRatedError: If the session already has a rating
        """
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5", field="rating")

        session = self._require(session_id)
        self._require_participant(session, session.student_id, "rate")
        if session.is_rated:
            raise AlreadyRatedError(session.id)
        if not session.is_accepted:
            raise InvalidTransitionError(session.id, "rate", session.state_label)

        review = (review or "").strip() or None
        fields = {"rating": rating, "review": review, "is_completed": True}

        with remote_operation(logger, "rate session", "Failed to rate session. Please try again."):
            await self._store.update(session.id, fields)

        updated = self._apply(session.id, **fields)
        logger.info(f"Session {session.id} rated {rating}/5")
        self._bus.publish(SessionRated(updated))
        self._publish_change()
        return updated

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, session_id: UUID) -> Optional[Session]:
        return next((s for s in self.sessions if s.id == session_id), None)

    def sessions_for_student(self, email: str) -> List[Session]:
        return [s for s in self.sessions if s.student_email == email]

    def sessions_for_tutor(self, email: str) -> List[Session]:
        return [s for s in self.sessions if s.tutor_email == email]

    def pending_for_tutor(self, email: str) -> List[Session]:
        return [s for s in self.sessions_for_tutor(email) if s.is_pending]

    def accepted_for_student(self, email: str) -> List[Session]:
        return [s for s in self.sessions_for_student(email) if s.is_accepted]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate_booking(
        self,
        student: UserProfile,
        tutor: UserProfile,
        subject: str,
        session_date: datetime,
        duration: int,
    ) -> None:
        if tutor.user_role != UserRole.TUTOR:
            raise ValidationError("Sessions can only be booked with tutors", field="tutor_id")
        if student.id == tutor.id:
            raise ValidationError("You cannot book a session with yourself", field="tutor_id")
        if not subject or not subject.strip():
            raise ValidationError("Please select a subject", field="subject")
        if subject not in tutor.selected_subjects:
            raise ValidationError(f"{tutor.full_name} does not teach {subject}", field="subject")
        if duration < MIN_DURATION_MINUTES:
            raise ValidationError(f"Sessions must be at least {MIN_DURATION_MINUTES} minutes", field="duration")
        if session_date.tzinfo is None:
            raise ValidationError("Session date must include a timezone", field="session_date")
        if session_date <= self._clock():
            raise ValidationError("Please choose a future date and time", field="session_date")

    def _require(self, session_id: UUID) -> Session:
        session = self.get(session_id)
        if session is None:
            raise NotFoundError("Session", session_id)
        return session

    def _require_participant(self, session: Session, participant_id: UUID, action: str) -> None:
        user = self._user_session.current_user
        if user is None:
            raise NotSignedInError()
        if user.id != participant_id:
            raise PermissionDeniedError(f"Only the session's {'tutor' if participant_id == session.tutor_id else 'student'} can {action} it")

    def _apply(self, session_id: UUID, **changes) -> Session:
        """Swap the cached session for an updated copy"""
        changes.setdefault("updated_at", self._clock())
        for index, cached in enumerate(self.sessions):
            if cached.id == session_id:
                updated = cached.model_copy(update=changes)
                self.sessions[index] = updated
                return updated
        raise NotFoundError("Session", session_id)

    def _publish_change(self) -> None:
        self._bus.publish(SessionsChanged(tuple(self.sessions)))
