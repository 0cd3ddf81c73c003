"""
Admin Service

User management and tutor verification review. Every operation requires the
signed-in user to be an admin.
"""
import logging
from enum import Enum
from typing import Dict, List
from uuid import UUID

from scholarlink.errors import NotFoundError, ValidationError
from scholarlink.schemas.user import UserProfile, UserRole, VerificationStatus
from scholarlink.stores.profile_store import ProfileStore
from scholarlink.utils import remote_operation, utc_now

logger = logging.getLogger(__name__)


class VerificationFilter(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    NOT_SUBMITTED = "not_submitted"
    ALL = "all"


_FILTER_STATUS = {
    VerificationFilter.PENDING: VerificationStatus.PENDING_REVIEW,
    VerificationFilter.VERIFIED: VerificationStatus.VERIFIED,
    VerificationFilter.NOT_SUBMITTED: VerificationStatus.NOT_SUBMITTED,
}


class AdminService:
    def __init__(self, profiles: ProfileStore, user_session):
        self._profiles = profiles
        self._user_session = user_session
        self.users: List[UserProfile] = []

    async def load_users(self) -> List[UserProfile]:
        self._user_session.require_role(UserRole.ADMIN)
        with remote_operation(logger, "load users", "Failed to load users. Please try again."):
            self.users = await self._profiles.list_all()
        return list(self.users)

    def user_counts(self) -> Dict[str, int]:
        return {
            "total": len(self.users),
            "tutors": sum(1 for u in self.users if u.user_role == UserRole.TUTOR),
            "learners": sum(1 for u in self.users if u.user_role == UserRole.LEARNER),
        }

    async def delete_user(self, user_id: UUID) -> None:
        admin = self._user_session.require_role(UserRole.ADMIN)
        if user_id == admin.id:
            raise ValidationError("You cannot delete your own account", field="user_id")

        with remote_operation(logger, "delete user", "Failed to delete user. Please try again."):
            await self._profiles.delete(user_id)

        self.users = [u for u in self.users if u.id != user_id]
        logger.info(f"Admin {admin.id} deleted user {user_id}")

    async def tutors(self, verification: VerificationFilter = VerificationFilter.PENDING) -> List[UserProfile]:
        """Tutors matching a verification filter, sorted by first name."""
        self._user_session.require_role(UserRole.ADMIN)
        with remote_operation(logger, "load tutors", "Failed to load tutors. Please try again."):
            tutors = await self._profiles.list_tutors(complete_only=False)

        status = _FILTER_STATUS.get(verification)
        if status is not None:
            tutors = [t for t in tutors if t.verification_status == status]
        return sorted(tutors, key=lambda t: t.first_name)

    async def set_verification_status(self, tutor_id: UUID, status: VerificationStatus) -> UserProfile:
        admin = self._user_session.require_role(UserRole.ADMIN)

        with remote_operation(logger, "update verification", "Failed to update verification status. Please try again."):
            tutor = await self._profiles.get(tutor_id)
            if tutor is None or tutor.user_role != UserRole.TUTOR:
                raise NotFoundError("Tutor", tutor_id)
            await self._profiles.update(tutor_id, {"verification_status": status.value, "updated_at": utc_now()})

        logger.info(f"Admin {admin.id} set tutor {tutor_id} verification to {status.value}")
        return tutor.model_copy(update={"verification_status": status})
