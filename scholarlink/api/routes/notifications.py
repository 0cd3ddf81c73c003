"""
Notifications API Endpoints

GET  /api/v1/notifications             - Cached notifications for the signed-in user
POST /api/v1/notifications/{id}/read   - Mark one as read
POST /api/v1/notifications/read-all    - Mark all as read
"""
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from scholarlink.api.auth import get_container, require_signed_in
from scholarlink.container import AppContainer
from scholarlink.schemas.notification import Notification
from scholarlink.schemas.user import UserProfile

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


class NotificationListResponse(BaseModel):
    data: List[Notification]
    metadata: Dict[str, Any]


class NotificationResponse(BaseModel):
    data: Notification


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    refresh: bool = Query(False),
    unread_only: bool = Query(False),
    user: UserProfile = Depends(require_signed_in),
    container: AppContainer = Depends(get_container),
):
    manager = container.notifications
    if refresh:
        await manager.load_notifications()

    items = manager.unread_for_user(user.id) if unread_only else manager.notifications_for_user(user.id)
    return NotificationListResponse(data=items, metadata={"unread_count": manager.unread_count(user.id)})


@router.post("/read-all", response_model=NotificationListResponse)
async def mark_all_read(
    user: UserProfile = Depends(require_signed_in),
    container: AppContainer = Depends(get_container),
):
    manager = container.notifications
    await manager.mark_all_as_read(user.id)
    return NotificationListResponse(data=manager.notifications_for_user(user.id), metadata={"unread_count": 0})


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: UUID,
    _: UserProfile = Depends(require_signed_in),
    container: AppContainer = Depends(get_container),
):
    return NotificationResponse(data=await container.notifications.mark_as_read(notification_id))
