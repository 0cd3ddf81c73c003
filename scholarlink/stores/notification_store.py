"""Remote notifications table access"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update, func

from scholarlink.database import AsyncSessionLocal
from scholarlink.models.notification import NotificationRecord
from scholarlink.schemas.notification import Notification, NotificationType


class NotificationStore:
    """
    Notification rows for the signed-in user.

    Clients cannot insert rows for other users directly, so ``create`` goes
    through the privileged ``create_notification`` stored procedure.
    """

    def __init__(self, session_factory=AsyncSessionLocal):
        self._session_factory = session_factory

    async def list_for(self, user_id: UUID) -> List[Notification]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(NotificationRecord)
                .where(NotificationRecord.user_id == user_id)
                .order_by(NotificationRecord.created_at.desc())
            )
            return [Notification.model_validate(row) for row in result.scalars().all()]

    async def create(
        self,
        user_id: UUID,
        title: str,
        message: str,
        type: NotificationType,
        related_id: Optional[UUID],
    ) -> None:
        async with self._session_factory() as db:
            await db.execute(
                select(
                    func.create_notification(
                        str(user_id),
                        title,
                        message,
                        type.value,
                        str(related_id) if related_id else None,
                    )
                )
            )
            await db.commit()

    async def mark_read(self, notification_id: UUID) -> None:
        async with self._session_factory() as db:
            await db.execute(
                update(NotificationRecord)
                .where(NotificationRecord.id == notification_id)
                .values(is_read=True)
            )
            await db.commit()

    async def mark_all_read(self, user_id: UUID) -> None:
        async with self._session_factory() as db:
            await db.execute(
                update(NotificationRecord)
                .where(NotificationRecord.user_id == user_id, NotificationRecord.is_read.is_(False))
                .values(is_read=True)
            )
            await db.commit()
