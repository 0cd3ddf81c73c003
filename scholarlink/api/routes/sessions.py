"""
Sessions API Endpoints

Booking, the tutor/student lifecycle transitions, and the upcoming reminder
read model.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from scholarlink.api.auth import get_container, require_role, require_signed_in
from scholarlink.container import AppContainer
from scholarlink.schemas.reminder import SessionReminder
from scholarlink.schemas.session import Session
from scholarlink.schemas.user import UserProfile, UserRole

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


class BookingRequest(BaseModel):
    tutor_id: UUID
    subject: str
    session_date: datetime
    preset_duration: int = 60
    custom_duration: Optional[str] = None
    message: str = ""


class RatingRequest(BaseModel):
    rating: int = Field(..., description="1 to 5 stars")
    review: Optional[str] = None


class SessionResponse(BaseModel):
    data: Session


class SessionListResponse(BaseModel):
    data: List[Session]
    metadata: Dict[str, Any]


class QuoteResponse(BaseModel):
    data: Dict[str, Any]


class ReminderListResponse(BaseModel):
    data: List[SessionReminder]


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    refresh: bool = Query(False, description="Reload from the backend first"),
    user: UserProfile = Depends(require_signed_in),
    container: AppContainer = Depends(get_container),
):
    """Sessions where the signed-in user is the student or the tutor."""
    manager = container.session_manager
    if refresh:
        await manager.load_sessions()

    if user.user_role == UserRole.TUTOR:
        sessions = manager.sessions_for_tutor(user.email)
        pending = len(manager.pending_for_tutor(user.email))
    else:
        sessions = manager.sessions_for_student(user.email)
        pending = sum(1 for s in sessions if s.is_pending)

    return SessionListResponse(data=sessions, metadata={"count": len(sessions), "pending": pending})


@router.get("/quote", response_model=QuoteResponse)
async def quote(
    tutor_id: UUID,
    preset_duration: int = 60,
    custom_duration: Optional[str] = None,
    _: UserProfile = Depends(require_signed_in),
    container: AppContainer = Depends(get_container),
):
    """Duration and total cost preview for the booking form."""
    return QuoteResponse(data=await container.booking.quote(tutor_id, preset_duration, custom_duration))


@router.get("/reminders", response_model=ReminderListResponse)
async def upcoming_reminders(
    _: UserProfile = Depends(require_signed_in),
    container: AppContainer = Depends(get_container),
):
    """Upcoming reminders, after any pending resync has finished."""
    await container.bus.drain()
    return ReminderListResponse(data=container.reminders.upcoming_reminders)


@router.post("", response_model=SessionResponse, status_code=201)
async def book_session(body: BookingRequest, container: AppContainer = Depends(get_container)):
    session = await container.booking.book(
        body.tutor_id,
        body.subject,
        body.session_date,
        body.preset_duration,
        body.custom_duration,
        body.message,
    )
    return SessionResponse(data=session)


@router.post("/{session_id}/accept", response_model=SessionResponse,
             dependencies=[Depends(require_role(UserRole.TUTOR))])
async def accept_session(session_id: UUID, container: AppContainer = Depends(get_container)):
    return SessionResponse(data=await container.session_manager.accept(session_id))


@router.post("/{session_id}/reject", response_model=SessionResponse,
             dependencies=[Depends(require_role(UserRole.TUTOR))])
async def reject_session(session_id: UUID, container: AppContainer = Depends(get_container)):
    return SessionResponse(data=await container.session_manager.reject(session_id))


@router.post("/{session_id}/complete", response_model=SessionResponse,
             dependencies=[Depends(require_role(UserRole.TUTOR))])
async def complete_session(session_id: UUID, container: AppContainer = Depends(get_container)):
    return SessionResponse(data=await container.session_manager.mark_complete(session_id))


@router.post("/{session_id}/rate", response_model=SessionResponse,
             dependencies=[Depends(require_role(UserRole.LEARNER))])
async def rate_session(session_id: UUID, body: RatingRequest, container: AppContainer = Depends(get_container)):
    return SessionResponse(data=await container.session_manager.rate(session_id, body.rating, body.review))
