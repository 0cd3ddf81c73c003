"""
Auth API Endpoints

POST /api/v1/auth/sign-in  - Sign in with email and password
POST /api/v1/auth/register - Create a learner or tutor account
POST /api/v1/auth/sign-out - Sign out and clear per-user caches
GET  /api/v1/auth/me       - Current user and top-level destination
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from scholarlink.api.auth import get_container
from scholarlink.container import AppContainer
from scholarlink.schemas.user import UserProfile, UserRole

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


class SignInRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    email: str
    password: str
    username: str
    user_role: UserRole


class AuthStatusResponse(BaseModel):
    data: Dict[str, Any]


def _status(container: AppContainer, user: Optional[UserProfile]) -> AuthStatusResponse:
    return AuthStatusResponse(
        data={
            "user": user.model_dump(mode="json") if user else None,
            "destination": container.user_session.destination.value,
        }
    )


@router.post("/sign-in", response_model=AuthStatusResponse)
async def sign_in(body: SignInRequest, container: AppContainer = Depends(get_container)):
    user = await container.user_session.sign_in(body.email, body.password)
    await container.refresh_all()
    return _status(container, user)


@router.post("/register", response_model=AuthStatusResponse, status_code=201)
async def register(body: RegisterRequest, container: AppContainer = Depends(get_container)):
    user = await container.user_session.register(body.email, body.password, body.username, body.user_role)
    return _status(container, user)


@router.post("/sign-out", response_model=AuthStatusResponse)
async def sign_out(container: AppContainer = Depends(get_container)):
    await container.user_session.sign_out()
    return _status(container, None)


@router.get("/me", response_model=AuthStatusResponse)
async def me(container: AppContainer = Depends(get_container)):
    return _status(container, container.user_session.current_user)
