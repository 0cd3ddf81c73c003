"""
Tutors API Endpoints

GET /api/v1/tutors           - Browse tutors (subject filter, search, sort)
GET /api/v1/tutors/subjects  - Subject list for the filter
GET /api/v1/tutors/{id}      - One tutor from the directory
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from scholarlink.api.auth import get_container
from scholarlink.container import AppContainer
from scholarlink.schemas.user import UserProfile
from scholarlink.services.tutor_directory import ALL, SUBJECTS, SortOption

router = APIRouter(prefix="/api/v1/tutors", tags=["tutors"])


class TutorListResponse(BaseModel):
    data: List[UserProfile]


class TutorResponse(BaseModel):
    data: UserProfile


@router.get("", response_model=TutorListResponse)
async def browse_tutors(
    subject: str = Query(ALL),
    search: str = Query(""),
    sort_by: SortOption = Query(SortOption.NAME),
    refresh: bool = Query(False),
    container: AppContainer = Depends(get_container),
):
    return TutorListResponse(data=await container.tutors.browse(subject, search, sort_by, refresh))


@router.get("/subjects")
async def list_subjects():
    return {"data": [ALL] + SUBJECTS}


@router.get("/{tutor_id}", response_model=TutorResponse)
async def get_tutor(tutor_id: UUID, container: AppContainer = Depends(get_container)):
    if not container.tutors.tutors:
        await container.tutors.load()
    return TutorResponse(data=container.tutors.get(tutor_id))
