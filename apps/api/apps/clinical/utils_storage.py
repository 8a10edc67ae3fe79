"""
MinIO storage utilities for patient reports and profile images.
Provides object upload and presigned URL generation for secure file access.
"""
import logging
import random
import string
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Union

from django.conf import settings
from minio import Minio
from minio.error import S3Error

from apps.core.observability import metrics

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a MinIO operation fails."""
    pass


@dataclass(frozen=True)
class ResolvedUrl:
    """A stored object path turned into a time-limited signed URL."""
    url: str
    resolved: bool = True


@dataclass(frozen=True)
class UnresolvedUrl:
    """A stored object path that could not be signed; the path is kept as-is."""
    path: str
    error: Optional[str] = None
    resolved: bool = False

    @property
    def url(self) -> str:
        return self.path


SignedUrl = Union[ResolvedUrl, UnresolvedUrl]


def get_minio_client():
    """Get configured MinIO client instance."""
    return Minio(
        settings.MINIO_ENDPOINT,
        access_key=settings.MINIO_ACCESS_KEY,
        secret_key=settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_USE_SSL
    )


def signed_url_expiry() -> timedelta:
    return timedelta(seconds=settings.SIGNED_URL_EXPIRY_SECONDS)


def generate_presigned_get_url(bucket_name: str, object_key: str, expires: Optional[timedelta] = None) -> str:
    """
    Generate presigned GET URL for downloading/viewing a file from MinIO.

    Args:
        bucket_name: MinIO bucket name
        object_key: Object key/path in bucket
        expires: URL expiration time (default SIGNED_URL_EXPIRY_SECONDS)

    Returns:
        Presigned URL string

    Raises:
        StorageError: If MinIO operation fails
    """
    client = get_minio_client()
    try:
        return client.presigned_get_object(
            bucket_name=bucket_name,
            object_name=object_key,
            expires=expires or signed_url_expiry()
        )
    except S3Error as e:
        raise StorageError(f"Failed to generate presigned GET URL: {e}")


def resolve_signed_url(bucket_name: str, stored_path: Optional[str]) -> Optional[SignedUrl]:
    """
    Turn a stored object path into a signed URL without ever raising.

    - Empty path: None
    - Path already starting with "http": returned as a ResolvedUrl unchanged
    - Signing failure: logged, returned as UnresolvedUrl carrying the original path
    """
    if not stored_path:
        return None

    if stored_path.startswith('http'):
        return ResolvedUrl(url=stored_path)

    try:
        return ResolvedUrl(url=generate_presigned_get_url(bucket_name, stored_path))
    except Exception as e:
        metrics.signed_url_failures_total.labels(bucket=bucket_name).inc()
        logger.warning(
            'Failed to sign stored object path',
            extra={
                'event': 'signed_url_failed',
                'bucket': bucket_name,
                'object_key': stored_path,
                'error': str(e),
            }
        )
        return UnresolvedUrl(path=stored_path, error=str(e))


def generate_report_object_key(patient_id, filename: str) -> str:
    """
    Object key for a patient report: <patient_id>/<epoch_ms>_<random>.<ext>

    The extension is the text after the last dot of the original filename
    (the whole name when there is no dot).
    """
    extension = filename.rsplit('.', 1)[-1]
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{patient_id}/{int(time.time() * 1000)}_{suffix}.{extension}"


def upload_object(bucket_name: str, object_key: str, file_obj, length: int, content_type: str) -> str:
    """
    Store a binary stream in MinIO.

    Returns:
        The object key that was written

    Raises:
        StorageError: If MinIO operation fails
    """
    client = get_minio_client()
    try:
        client.put_object(
            bucket_name=bucket_name,
            object_name=object_key,
            data=file_obj,
            length=length,
            content_type=content_type or 'application/octet-stream',
        )
    except S3Error as e:
        raise StorageError(f"Failed to upload object to MinIO: {e}")
    return object_key
