"""
Admin API Endpoints

User management and tutor verification review. Admin role only.
"""
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from scholarlink.api.auth import get_container, require_role
from scholarlink.container import AppContainer
from scholarlink.schemas.user import UserProfile, UserRole, VerificationStatus
from scholarlink.services.admin import VerificationFilter

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["admin"],
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)


class UserListResponse(BaseModel):
    data: List[UserProfile]
    metadata: Dict[str, Any]


class TutorListResponse(BaseModel):
    data: List[UserProfile]


class VerificationUpdate(BaseModel):
    status: VerificationStatus


class TutorResponse(BaseModel):
    data: UserProfile


@router.get("/users", response_model=UserListResponse)
async def list_users(container: AppContainer = Depends(get_container)):
    users = await container.admin.load_users()
    return UserListResponse(data=users, metadata=container.admin.user_counts())


@router.delete("/users/{user_id}", status_code=204)
async def delete_user(user_id: UUID, container: AppContainer = Depends(get_container)):
    await container.admin.delete_user(user_id)


@router.get("/tutors", response_model=TutorListResponse)
async def list_tutors(
    verification: VerificationFilter = Query(VerificationFilter.PENDING),
    container: AppContainer = Depends(get_container),
):
    return TutorListResponse(data=await container.admin.tutors(verification))


@router.put("/tutors/{tutor_id}/verification", response_model=TutorResponse)
async def set_verification(tutor_id: UUID, body: VerificationUpdate, container: AppContainer = Depends(get_container)):
    return TutorResponse(data=await container.admin.set_verification_status(tutor_id, body.status))
