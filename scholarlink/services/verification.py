"""Tutor verification submissions"""
import asyncio
import logging
from typing import Optional

from scholarlink.errors import ValidationError
from scholarlink.schemas.user import UserProfile, UserRole, VerificationStatus
from scholarlink.stores.object_storage import VerificationStorage
from scholarlink.stores.profile_store import ProfileStore
from scholarlink.utils import remote_operation, utc_now

logger = logging.getLogger(__name__)

ID_TYPES = ["Passport", "Driver's License", "National ID", "School ID"]

CREDENTIAL_MIME_TYPES = {
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}


class TutorVerificationService:
    def __init__(self, storage: VerificationStorage, profiles: ProfileStore, user_session):
        self._storage = storage
        self._profiles = profiles
        self._user_session = user_session

    async def submit(
        self,
        id_type: str,
        id_number: str,
        id_image: bytes,
        credential_file: Optional[bytes] = None,
        credential_extension: str = "pdf",
        reference_contact: str = "",
    ) -> UserProfile:
        """
        Upload verification documents and put the tutor into review.

        Raises:
            PermissionDeniedError: If the signed-in user is not a tutor
            ValidationError: Missing ID details or unsupported file type
            RemoteOperationError: Upload or profile update failed
        """
        tutor = self._user_session.require_role(UserRole.TUTOR)

        id_number = id_number.strip()
        extension = credential_extension.lower().lstrip(".")
        if id_type not in ID_TYPES:
            raise ValidationError("Select the type of ID you are submitting", field="id_type")
        if not id_number:
            raise ValidationError("Enter your ID number", field="id_number")
        if not id_image:
            raise ValidationError("Attach a photo of your ID", field="id_image")
        if credential_file and extension not in CREDENTIAL_MIME_TYPES:
            raise ValidationError("Credentials must be a PDF or image file", field="credential_file")

        with remote_operation(logger, "upload verification documents", "Failed to upload your documents. Please try again."):
            # boto3 is blocking
            id_image_url = await asyncio.to_thread(self._storage.upload_id_image, id_image, tutor.id)
            document_url = None
            if credential_file:
                document_url = await asyncio.to_thread(
                    self._storage.upload_credential_file,
                    credential_file,
                    tutor.id,
                    extension,
                    CREDENTIAL_MIME_TYPES[extension],
                )

        fields = {
            "verification_id_type": id_type,
            "verification_id_number": id_number,
            "verification_id_image_url": id_image_url,
            "verification_document_url": document_url,
            "verification_reference_contact": reference_contact.strip() or None,
            "verification_status": VerificationStatus.PENDING_REVIEW.value,
            "updated_at": utc_now(),
        }
        with remote_operation(logger, "submit verification", "Failed to submit verification. Please try again."):
            await self._profiles.update(tutor.id, fields)

        logger.info(f"Verification submitted for tutor {tutor.id}")
        return await self._user_session.fetch_user_profile(tutor.id)
