import logging
import os
import uuid
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from quickblog.core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"}
MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB


class S3Service:
    def __init__(self, bucket_name: str = None):
        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
            region_name=settings.AWS_REGION
        )
        self.bucket_name = bucket_name or settings.S3_BUCKET

    def upload_file(self, file_content: bytes, file_name: str, content_type: str = "image/jpeg", folder: str = "blogs") -> Optional[str]:
        """
        Upload a file to S3 and return its key.

        Args:
            file_content: Binary content of the file
            file_name: Original filename, only its extension is kept
            content_type: MIME type of the file
            folder: Key prefix inside the bucket

        Returns:
            S3 key (e.g., "blogs/uuid.webp") or None if the upload failed
        """
        file_extension = os.path.splitext(file_name or "")[1].lower()
        s3_key = f"{folder}/{uuid.uuid4()}{file_extension}"
        try:
            # Public read is granted by the bucket policy, not per-object ACLs
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=s3_key,
                Body=file_content,
                ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Error uploading %s to S3: %s", s3_key, e)
            return None
        return s3_key

    def get_public_url(self, s3_key: str) -> str:
        return f"{settings.S3_BASE_URL}/{s3_key}"

    def upload_blog_image(self, file_content: bytes, file_name: str, content_type: str) -> Optional[str]:
        """Upload a cover image and return its public URL, or None on failure."""
        s3_key = self.upload_file(file_content, file_name, content_type, folder="blogs")
        if not s3_key:
            return None
        return self.get_public_url(s3_key)


_s3_service: Optional[S3Service] = None


def get_s3_service() -> S3Service:
    """FastAPI dependency, creating the boto3 client on first use."""
    global _s3_service
    if _s3_service is None:
        _s3_service = S3Service()
    return _s3_service
