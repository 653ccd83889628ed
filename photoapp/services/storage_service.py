"""Storage service: image binaries in MinIO."""

import io
import logging
import uuid
from typing import Optional

from minio import Minio
from minio.error import S3Error

from photoapp.core.config import settings
from photoapp.core.exceptions import StorageError

logger = logging.getLogger("photoapp.storage")


class StorageService:
    """Puts and deletes image objects in the MinIO bucket."""

    def __init__(self):
        self._client: Optional[Minio] = None
        self.bucket = settings.MINIO_BUCKET

    @property
    def client(self) -> Minio:
        if self._client is None:
            self._client = Minio(
                settings.MINIO_ENDPOINT,
                access_key=settings.MINIO_ACCESS_KEY,
                secret_key=settings.MINIO_SECRET_KEY,
                secure=settings.MINIO_SECURE,
            )
        return self._client

    def ensure_bucket(self) -> None:
        """Create the default bucket if it doesn't exist."""
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)

    @staticmethod
    def build_key(filename: str) -> str:
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        return f"images/{uuid.uuid4().hex}.{ext}"

    def public_url(self, key: str) -> str:
        return f"{settings.PUBLIC_MEDIA_URL.rstrip('/')}/{key}"

    def put_image(self, key: str, content: bytes, content_type: str) -> str:
        """Upload bytes under ``key`` and return the public URL."""
        try:
            self.ensure_bucket()
            self.client.put_object(
                self.bucket, key, io.BytesIO(content), len(content), content_type=content_type,
            )
        except S3Error as e:
            raise StorageError(f"Failed to store image: {e}")
        return self.public_url(key)

    def delete_image(self, key: str) -> bool:
        """Best-effort delete; failures are logged, never raised."""
        try:
            self.client.remove_object(self.bucket, key)
            return True
        except Exception as e:
            logger.warning("Could not delete image %s from storage: %s", key, e)
            return False


storage_service = StorageService()
