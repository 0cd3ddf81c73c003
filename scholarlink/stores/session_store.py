"""Remote sessions table access"""
import logging
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy import select, update, or_

from scholarlink.database import AsyncSessionLocal
from scholarlink.models.session import SessionRecord
from scholarlink.schemas.session import Session, NewSession

logger = logging.getLogger(__name__)


class SessionStore:
    """Reads and writes rows of the remote ``sessions`` table."""

    def __init__(self, session_factory=AsyncSessionLocal):
        self._session_factory = session_factory

    async def list_sessions_for(self, user_id: UUID) -> List[Session]:
        """Sessions where the user is the student or the tutor, newest first"""
        async with self._session_factory() as db:
            result = await db.execute(
                select(SessionRecord)
                .where(or_(SessionRecord.student_id == user_id, SessionRecord.tutor_id == user_id))
                .order_by(SessionRecord.created_at.desc())
            )
            return [Session.model_validate(row) for row in result.scalars().all()]

    async def insert(self, new_session: NewSession) -> Session:
        async with self._session_factory() as db:
            record = SessionRecord(**new_session.model_dump())
            db.add(record)
            await db.commit()
            await db.refresh(record)
            logger.debug(f"Inserted session {record.id}")
            return Session.model_validate(record)

    async def update(self, session_id: UUID, fields: Dict[str, Any]) -> None:
        async with self._session_factory() as db:
            await db.execute(
                update(SessionRecord)
                .where(SessionRecord.id == session_id)
                .values(**fields)
            )
            await db.commit()
