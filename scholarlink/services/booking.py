"""
Booking

Turns the booking form (subject, date, preset or custom duration, message)
into a session request. Booking requires a signed-in learner and a saved
payment profile on this device.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from scholarlink.errors import NotFoundError, ValidationError
from scholarlink.schemas.payment import digits_only
from scholarlink.schemas.session import MIN_DURATION_MINUTES, PRESET_DURATIONS, Session, calculate_total_cost
from scholarlink.schemas.user import UserProfile, UserRole
from scholarlink.services.payment_store import PaymentDetailsStore
from scholarlink.services.session_manager import SessionLifecycleManager
from scholarlink.stores.profile_store import ProfileStore
from scholarlink.utils import remote_operation

logger = logging.getLogger(__name__)


def effective_duration(preset: int = 60, custom: Optional[str] = None) -> int:
    """
    Minutes to book: a custom entry of at least 30 minutes overrides the preset.

    Custom input keeps its first four digits; shorter custom values fall back
    to the preset.
    """
    if custom:
        digits = digits_only(custom)[:4]
        if digits and int(digits) >= MIN_DURATION_MINUTES:
            return int(digits)

    if preset not in PRESET_DURATIONS:
        raise ValidationError(
            f"Duration must be one of {', '.join(str(d) for d in PRESET_DURATIONS)} minutes",
            field="duration",
        )
    return preset


def quote(tutor: UserProfile, preset: int = 60, custom: Optional[str] = None) -> Dict[str, Any]:
    duration = effective_duration(preset, custom)
    hourly_rate = tutor.hourly_rate if tutor.hourly_rate is not None else Decimal("0")
    return {
        "duration": duration,
        "hourly_rate": hourly_rate,
        "total_cost": calculate_total_cost(hourly_rate, duration),
    }


class BookingService:
    def __init__(
        self,
        sessions: SessionLifecycleManager,
        profiles: ProfileStore,
        payments: PaymentDetailsStore,
        user_session,
    ):
        self._sessions = sessions
        self._profiles = profiles
        self._payments = payments
        self._user_session = user_session

    async def get_tutor(self, tutor_id: UUID) -> UserProfile:
        with remote_operation(logger, "load tutor", "Failed to load tutor. Please try again."):
            tutor = await self._profiles.get(tutor_id)
        if tutor is None or tutor.user_role != UserRole.TUTOR:
            raise NotFoundError("Tutor", tutor_id)
        return tutor

    async def quote(self, tutor_id: UUID, preset: int = 60, custom: Optional[str] = None) -> Dict[str, Any]:
        return quote(await self.get_tutor(tutor_id), preset, custom)

    async def book(
        self,
        tutor_id: UUID,
        subject: str,
        session_date: datetime,
        preset_duration: int = 60,
        custom_duration: Optional[str] = None,
        message: str = "",
    ) -> Session:
        student = self._user_session.require_role(UserRole.LEARNER)
        duration = effective_duration(preset_duration, custom_duration)

        if not await self._payments.has_stored_details():
            raise ValidationError("Add a payment method to finish your booking.", field="payment")

        tutor = await self.get_tutor(tutor_id)
        return await self._sessions.create_session(student, tutor, subject, session_date, duration, message)
