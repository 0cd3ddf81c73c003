"""
Profile Service

Profile setup and edits for the signed-in user. Saving a valid profile marks
it complete, which moves the user past the profile setup screen.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from scholarlink.config import REMOTE_TIMEOUT_SECONDS
from scholarlink.errors import ValidationError
from scholarlink.schemas.user import UserProfile, UserRole
from scholarlink.stores.profile_store import ProfileStore
from scholarlink.utils import remote_operation, utc_now, with_timeout

logger = logging.getLogger(__name__)

MAX_BIO_LENGTH = 500


def _parse_rate(hourly_rate) -> Optional[Decimal]:
    if hourly_rate is None or str(hourly_rate).strip() == "":
        return None
    try:
        rate = Decimal(str(hourly_rate).strip())
    except InvalidOperation:
        raise ValidationError("Hourly rate must be a number", field="hourly_rate")
    if not rate.is_finite() or rate <= 0:
        raise ValidationError("Hourly rate must be greater than zero", field="hourly_rate")
    return rate


class ProfileService:
    def __init__(self, profiles: ProfileStore, user_session, timeout: float = REMOTE_TIMEOUT_SECONDS):
        self._profiles = profiles
        self._user_session = user_session
        self._timeout = timeout

    async def save_profile(
        self,
        first_name: str,
        last_name: str,
        bio: str = "",
        selected_subjects: Optional[List[str]] = None,
        hourly_rate=None,
        years_experience: Optional[int] = None,
    ) -> UserProfile:
        """
        Validate and store the signed-in user's profile, then mark it complete.

        Tutors must pick at least one subject and set an hourly rate.

        Raises:
            ValidationError: Missing names or tutor fields
            RemoteOperationError: Backend failure or timeout
        """
        user = self._user_session.require_user()

        first_name = first_name.strip()
        last_name = last_name.strip()
        bio = bio.strip()
        subjects = [s.strip() for s in (selected_subjects or []) if s and s.strip()]
        rate = _parse_rate(hourly_rate)

        if not first_name:
            raise ValidationError("Enter your first name", field="first_name")
        if not last_name:
            raise ValidationError("Enter your last name", field="last_name")
        if len(bio) > MAX_BIO_LENGTH:
            raise ValidationError(f"Bio is limited to {MAX_BIO_LENGTH} characters", field="bio")
        if years_experience is not None and years_experience < 0:
            raise ValidationError("Years of experience cannot be negative", field="years_experience")

        if user.user_role == UserRole.TUTOR:
            if not subjects:
                raise ValidationError("Select at least one subject you teach", field="selected_subjects")
            if rate is None:
                raise ValidationError("Set your hourly rate", field="hourly_rate")

        fields = {
            "first_name": first_name,
            "last_name": last_name,
            "bio": bio,
            "selected_subjects": subjects,
            "hourly_rate": rate,
            "years_experience": years_experience,
            "is_profile_complete": True,
            "updated_at": utc_now(),
        }

        with remote_operation(logger, "save profile", "Failed to save your profile. Please try again."):
            await with_timeout(self._timeout, self._profiles.update(user.id, fields))

        profile = await self._user_session.fetch_user_profile(user.id)
        logger.info(f"Profile saved for {profile.id}")
        return profile
