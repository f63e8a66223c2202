"""File service — stores uploaded documents in MinIO."""

import io
import os
import hashlib
import logging
from datetime import timedelta
from typing import Optional

from minio import Minio
from minio.error import S3Error
from fastapi import UploadFile

from academico.core.config import settings
from academico.core.exceptions import StorageError, ValidationError

logger = logging.getLogger("academico")

ALLOWED_EXTENSIONS = (".pdf", ".jpg", ".jpeg", ".png", ".doc", ".docx")


class FileService:
    """Uploads documents (certificates, class material, enrollment papers) to MinIO."""

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
    def validate(filename: str, size_bytes: int) -> str:
        """Check extension and size; returns the lower-cased extension."""
        ext = os.path.splitext(filename)[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(f"Tipo de arquivo não permitido: {ext or filename}")
        max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        if size_bytes > max_bytes:
            raise ValidationError(f"Arquivo muito grande (máximo {settings.MAX_UPLOAD_SIZE_MB}MB)")
        if size_bytes == 0:
            raise ValidationError("Arquivo vazio")
        return ext

    def put_bytes(
        self,
        content: bytes,
        filename: str,
        category: str,
        content_type: Optional[str] = None,
    ) -> str:
        """Store ``content`` under ``uploads/<category>/<checksum>/<filename>``.

        Returns:
            The object key.
        """
        self.validate(filename, len(content))
        checksum = hashlib.md5(content).hexdigest()
        key = f"uploads/{category}/{checksum}/{os.path.basename(filename)}"
        try:
            self.client.put_object(
                self.bucket,
                key,
                io.BytesIO(content),
                length=len(content),
                content_type=content_type or "application/octet-stream",
            )
        except S3Error as e:
            raise StorageError(f"Failed to upload to MinIO: {e}")
        logger.info("Stored %s (%d bytes)", key, len(content))
        return key

    async def upload(self, upload: UploadFile, category: str) -> str:
        """Read an uploaded file and store it; returns the object key."""
        content = await upload.read()
        return self.put_bytes(content, upload.filename or "arquivo", category, upload.content_type)

    def get_presigned_url(self, key: str, expires_minutes: int = 15) -> str:
        """Generate a presigned download URL for a MinIO object."""
        try:
            return self.client.presigned_get_object(
                self.bucket, key, expires=timedelta(minutes=expires_minutes)
            )
        except S3Error as e:
            raise StorageError(f"Failed to generate presigned URL: {e}")

    def delete_object(self, key: str) -> None:
        """Delete an object from MinIO."""
        try:
            self.client.remove_object(self.bucket, key)
        except S3Error as e:
            raise StorageError(f"Failed to delete from MinIO: {e}")


# Singleton instance
file_service = FileService()
