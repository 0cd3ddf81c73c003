"""Remote profiles table access"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, update, delete

from scholarlink.database import AsyncSessionLocal
from scholarlink.models.profile import ProfileRecord
from scholarlink.schemas.user import UserProfile, UserRole


class ProfileStore:
    def __init__(self, session_factory=AsyncSessionLocal):
        self._session_factory = session_factory

    async def get(self, user_id: UUID) -> Optional[UserProfile]:
        async with self._session_factory() as db:
            result = await db.execute(select(ProfileRecord).where(ProfileRecord.id == user_id))
            record = result.scalar_one_or_none()
            return UserProfile.model_validate(record) if record else None

    async def get_by_email(self, email: str) -> Optional[UserProfile]:
        async with self._session_factory() as db:
            result = await db.execute(select(ProfileRecord).where(ProfileRecord.email == email))
            record = result.scalar_one_or_none()
            return UserProfile.model_validate(record) if record else None

    async def insert(self, fields: Dict[str, Any]) -> UserProfile:
        async with self._session_factory() as db:
            record = ProfileRecord(**fields)
            db.add(record)
            await db.commit()
            await db.refresh(record)
            return UserProfile.model_validate(record)

    async def list_all(self) -> List[UserProfile]:
        async with self._session_factory() as db:
            result = await db.execute(select(ProfileRecord).order_by(ProfileRecord.created_at.desc()))
            return [UserProfile.model_validate(row) for row in result.scalars().all()]

    async def list_tutors(self, complete_only: bool = True) -> List[UserProfile]:
        async with self._session_factory() as db:
            query = select(ProfileRecord).where(ProfileRecord.user_role == UserRole.TUTOR.value)
            if complete_only:
                query = query.where(ProfileRecord.is_profile_complete.is_(True))
            result = await db.execute(query)
            return [UserProfile.model_validate(row) for row in result.scalars().all()]

    async def update(self, user_id: UUID, fields: Dict[str, Any]) -> None:
        async with self._session_factory() as db:
            await db.execute(update(ProfileRecord).where(ProfileRecord.id == user_id).values(**fields))
            await db.commit()

    async def delete(self, user_id: UUID) -> None:
        async with self._session_factory() as db:
            await db.execute(delete(ProfileRecord).where(ProfileRecord.id == user_id))
            await db.commit()
