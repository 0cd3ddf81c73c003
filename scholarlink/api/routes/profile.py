"""
Profile API Endpoints

Profile setup for the signed-in user and tutor verification submissions.
"""
import base64
import binascii
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from scholarlink.api.auth import get_container, require_signed_in
from scholarlink.container import AppContainer
from scholarlink.errors import ValidationError
from scholarlink.schemas.user import UserProfile

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


class ProfileRequest(BaseModel):
    first_name: str
    last_name: str
    bio: str = ""
    selected_subjects: List[str] = []
    hourly_rate: Optional[Decimal] = None
    years_experience: Optional[int] = None


class VerificationRequest(BaseModel):
    id_type: str
    id_number: str
    id_image_base64: str
    credential_file_base64: Optional[str] = None
    credential_extension: str = "pdf"
    reference_contact: str = ""


class ProfileResponse(BaseModel):
    data: UserProfile


def _decode(value: str, field: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Attachment is not valid base64", field=field)


@router.get("", response_model=ProfileResponse)
async def get_profile(user: UserProfile = Depends(require_signed_in)):
    return ProfileResponse(data=user)


@router.put("", response_model=ProfileResponse)
async def save_profile(body: ProfileRequest, container: AppContainer = Depends(get_container)):
    profile = await container.profiles.save_profile(
        body.first_name,
        body.last_name,
        body.bio,
        body.selected_subjects,
        body.hourly_rate,
        body.years_experience,
    )
    return ProfileResponse(data=profile)


@router.post("/verification", response_model=ProfileResponse)
async def submit_verification(body: VerificationRequest, container: AppContainer = Depends(get_container)):
    credential = _decode(body.credential_file_base64, "credential_file") if body.credential_file_base64 else None
    profile = await container.verification.submit(
        body.id_type,
        body.id_number,
        _decode(body.id_image_base64, "id_image"),
        credential,
        body.credential_extension,
        body.reference_contact,
    )
    return ProfileResponse(data=profile)
