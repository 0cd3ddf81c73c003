"""
Object storage client for tutor verification uploads.

Talks to the backend's S3-compatible storage endpoint and returns public
URLs for uploaded objects.
"""
import logging
import uuid
from uuid import UUID

import boto3

from scholarlink.config import STORAGE_BUCKET, STORAGE_ENDPOINT_URL, STORAGE_PUBLIC_URL, STORAGE_REGION

logger = logging.getLogger(__name__)


class VerificationStorage:
    """Uploads ID images and credential files into the verification bucket."""

    def __init__(
        self,
        bucket: str = STORAGE_BUCKET,
        endpoint_url: str = STORAGE_ENDPOINT_URL,
        public_url: str = STORAGE_PUBLIC_URL,
        region: str = STORAGE_REGION,
        s3_client=None,
    ) -> None:
        self._bucket = bucket
        self._public_url = public_url.rstrip("/")
        self._s3_client = s3_client or boto3.client("s3", endpoint_url=endpoint_url, region_name=region)

    def upload_id_image(self, data: bytes, tutor_id: UUID) -> str:
        key = f"id-images/{tutor_id}-{uuid.uuid4()}.jpg"
        return self._upload(data, key, "image/jpeg")

    def upload_credential_file(self, data: bytes, tutor_id: UUID, file_extension: str, mime_type: str) -> str:
        key = f"credentials/{tutor_id}-{uuid.uuid4()}.{file_extension.lstrip('.')}"
        return self._upload(data, key, mime_type)

    def public_url(self, key: str) -> str:
        return f"{self._public_url}/{self._bucket}/{key}"

    def _upload(self, data: bytes, key: str, content_type: str) -> str:
        """
        Put an object, overwriting any existing object with the same key.

        Raises:
            botocore.exceptions.ClientError: If the upload fails
        """
        self._s3_client.put_object(Bucket=self._bucket, Key=key, Body=data, ContentType=content_type)
        logger.info(f"Uploaded {len(data)} bytes to {self._bucket}/{key}")
        return self.public_url(key)
