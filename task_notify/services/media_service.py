"""MinIO service for task media cleanup.

Task attachments live under ``tasks/<task_id>/`` in the images and
attachments buckets. This service deletes them either by explicit object
keys or by task prefix.
"""

import logging
from typing import Iterable, Optional

from minio import Minio
from minio.deleteobjects import DeleteObject
from minio.error import S3Error

from ..config import Settings, settings
from ..exceptions import ConfigurationMissingError

logger = logging.getLogger(__name__)


class MediaServiceError(Exception):
    """Custom exception for media storage errors."""

    pass


class MediaService:
    """
    Service for deleting task media from MinIO object storage.

    Every operation covers all media buckets, since a given key may be
    stored as an image or as a generic attachment.
    """

    # Default bucket names
    ATTACHMENTS_BUCKET = "task-attachments"
    IMAGES_BUCKET = "task-images"

    # Maximum keys per delete request
    DELETE_CHUNK_SIZE = 80

    def __init__(self, config: Settings, client: Optional[Minio] = None):
        """Keep settings; the MinIO client is created on first use."""
        self._config = config
        self._client = client

    @property
    def buckets(self) -> list[str]:
        return [self.IMAGES_BUCKET, self.ATTACHMENTS_BUCKET]

    @property
    def client(self) -> Minio:
        """
        Get the MinIO client instance, creating it if necessary.

        Raises:
            ConfigurationMissingError: If MinIO settings are absent
            MediaServiceError: If client creation fails
        """
        if self._client is None:
            if not self._config.media_configured:
                raise ConfigurationMissingError(
                    "Media storage config is missing. Set MINIO_ENDPOINT, "
                    "MINIO_ACCESS_KEY and MINIO_SECRET_KEY."
                )
            try:
                self._client = Minio(
                    endpoint=self._config.minio_endpoint,
                    access_key=self._config.minio_access_key,
                    secret_key=self._config.minio_secret_key,
                    secure=self._config.minio_secure,
                )
            except Exception as e:
                raise MediaServiceError(f"Failed to create MinIO client: {str(e)}")
        return self._client

    def delete_objects(self, object_names: list[str]) -> int:
        """
        Delete explicit objects from every media bucket.

        Keys are sent in chunks of DELETE_CHUNK_SIZE; a key missing from
        a bucket is not counted.

        Returns:
            int: Number of objects deleted across all buckets

        Raises:
            MediaServiceError: If a delete request fails
        """
        deleted = 0
        for start in range(0, len(object_names), self.DELETE_CHUNK_SIZE):
            chunk = object_names[start:start + self.DELETE_CHUNK_SIZE]
            for bucket in self.buckets:
                deleted += self._delete_existing(bucket, chunk)
        return deleted

    def delete_prefix(self, prefix: str) -> int:
        """
        Delete every object under a prefix from every media bucket.

        Returns:
            int: Number of objects deleted across all buckets

        Raises:
            MediaServiceError: If listing or deletion fails
        """
        deleted = 0
        for bucket in self.buckets:
            try:
                if not self.client.bucket_exists(bucket):
                    continue
                names = [
                    obj.object_name
                    for obj in self.client.list_objects(bucket, prefix=prefix, recursive=True)
                    if not obj.is_dir
                ]
            except S3Error as e:
                raise MediaServiceError(f"Failed to list objects: {str(e)}")

            for start in range(0, len(names), self.DELETE_CHUNK_SIZE):
                deleted += self._remove(bucket, names[start:start + self.DELETE_CHUNK_SIZE])
        return deleted

    def ping(self) -> dict:
        """
        Check which media buckets are reachable.

        Returns:
            dict: bucket name -> exists flag
        """
        try:
            return {bucket: self.client.bucket_exists(bucket) for bucket in self.buckets}
        except S3Error as e:
            raise MediaServiceError(f"Failed to reach media storage: {str(e)}")

    def _delete_existing(self, bucket: str, names: Iterable[str]) -> int:
        """Delete the keys that exist in bucket; return how many were deleted."""
        try:
            if not self.client.bucket_exists(bucket):
                return 0
        except S3Error as e:
            raise MediaServiceError(f"Failed to check bucket '{bucket}': {str(e)}")

        existing = [name for name in names if self._exists(bucket, name)]
        if not existing:
            return 0
        return self._remove(bucket, existing)

    def _exists(self, bucket: str, name: str) -> bool:
        try:
            self.client.stat_object(bucket, name)
            return True
        except S3Error:
            return False

    def _remove(self, bucket: str, names: list[str]) -> int:
        try:
            # remove_objects is lazy: errors are only produced while iterating
            errors = list(
                self.client.remove_objects(bucket, [DeleteObject(name) for name in names])
            )
        except S3Error as e:
            raise MediaServiceError(f"Failed to delete objects: {str(e)}")
        for error in errors:
            logger.warning(f"Failed to delete {bucket}/{error.name}: {error.message}")
        return len(names) - len(errors)


# Global service instance
media_service = MediaService(settings)


def get_media_service() -> MediaService:
    """
    FastAPI dependency for getting the media service instance.

    Returns:
        Media service instance
    """
    return media_service
