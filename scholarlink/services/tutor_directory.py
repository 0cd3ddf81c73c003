"""Tutor directory: browse, filter and sort tutors with completed profiles"""
import logging
from decimal import Decimal
from enum import Enum
from typing import List
from uuid import UUID

from scholarlink.errors import NotFoundError
from scholarlink.schemas.user import UserProfile
from scholarlink.stores.profile_store import ProfileStore
from scholarlink.utils import remote_operation

logger = logging.getLogger(__name__)

ALL = "All"

SUBJECTS = [
    "Mathematics", "Programming", "Science", "English",
    "History", "Physics", "Chemistry", "Biology",
    "Psychology", "Economics", "Art", "Music",
]


class SortOption(str, Enum):
    NAME = "name"
    RATE_ASC = "rate_asc"
    RATE_DESC = "rate_desc"
    EXPERIENCE = "experience"


def _matches_search(tutor: UserProfile, search: str) -> bool:
    needle = search.casefold()
    return (
        needle in tutor.first_name.casefold()
        or needle in tutor.last_name.casefold()
        or any(needle in subject.casefold() for subject in tutor.selected_subjects)
    )


def filter_tutors(
    tutors: List[UserProfile],
    subject: str = ALL,
    search: str = "",
    sort_by: SortOption = SortOption.NAME,
) -> List[UserProfile]:
    search = search.strip()
    filtered = [
        t for t in tutors
        if (subject == ALL or subject in t.selected_subjects)
        and (not search or _matches_search(t, search))
    ]

    zero = Decimal("0")
    if sort_by == SortOption.RATE_ASC:
        return sorted(filtered, key=lambda t: t.hourly_rate or zero)
    if sort_by == SortOption.RATE_DESC:
        return sorted(filtered, key=lambda t: t.hourly_rate or zero, reverse=True)
    if sort_by == SortOption.EXPERIENCE:
        return sorted(filtered, key=lambda t: t.years_experience or 0, reverse=True)
    return sorted(filtered, key=lambda t: t.first_name)


class TutorDirectory:
    def __init__(self, profiles: ProfileStore):
        self._profiles = profiles
        self.tutors: List[UserProfile] = []

    async def load(self) -> List[UserProfile]:
        with remote_operation(logger, "load tutors", "Failed to load tutors. Please try again."):
            self.tutors = await self._profiles.list_tutors(complete_only=True)
        return list(self.tutors)

    async def browse(
        self,
        subject: str = ALL,
        search: str = "",
        sort_by: SortOption = SortOption.NAME,
        refresh: bool = False,
    ) -> List[UserProfile]:
        if refresh or not self.tutors:
            await self.load()
        return filter_tutors(self.tutors, subject, search, sort_by)

    def get(self, tutor_id: UUID) -> UserProfile:
        tutor = next((t for t in self.tutors if t.id == tutor_id), None)
        if tutor is None:
            raise NotFoundError("Tutor", tutor_id)
        return tutor
