"""
MinIO storage helpers for patient pre-registration documents.

Two document types are supported, each in its own private bucket:
- lab_reports -> MINIO_LAB_REPORTS_BUCKET (lab-reports)
- aadhaar     -> MINIO_AADHAAR_BUCKET (aadhaar-documents)

Objects are stored under <user_id>/<user_id>_<type>_<YYYY-MM-DDTHH-MM-SS>.<ext>
"""
import logging
import math
from dataclasses import dataclass
from datetime import timedelta, timezone as dt_timezone
from typing import List, Optional

from django.conf import settings
from django.utils import timezone
from minio.error import S3Error

from apps.clinical import utils_storage
from apps.clinical.utils_storage import StorageError, get_minio_client

logger = logging.getLogger(__name__)

LAB_REPORTS = 'lab_reports'
AADHAAR = 'aadhaar'
DOCUMENT_TYPES = (LAB_REPORTS, AADHAAR)

ALLOWED_CONTENT_TYPES = ('application/pdf', 'image/jpeg', 'image/jpg')
DEFAULT_MAX_SIZE_MB = 10
LIST_LIMIT = 100

IMAGE_EXTENSIONS = ('jpg', 'jpeg', 'png', 'gif', 'bmp', 'webp')
SIZE_UNITS = ('Bytes', 'KB', 'MB', 'GB')


class DocumentValidationError(Exception):
    """File rejected before upload (type or size)."""
    pass


@dataclass(frozen=True)
class UploadedDocument:
    bucket: str
    path: str

    @property
    def full_path(self) -> str:
        return f"{self.bucket}/{self.path}"


def validate_file(file, max_size_mb: int = DEFAULT_MAX_SIZE_MB) -> None:
    """
    Check content type and size of an uploaded file.

    Raises:
        DocumentValidationError: Not a PDF/JPEG, or larger than max_size_mb
    """
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise DocumentValidationError('Only PDF and JPEG files are allowed')

    if file.size > max_size_mb * 1024 * 1024:
        raise DocumentValidationError(f'File size must be less than {max_size_mb}MB')


def get_file_extension(filename: str) -> str:
    """Lowercased text after the last dot (the whole name when there is none)."""
    return filename.split('.')[-1].lower()


def is_image_file(filename: str) -> bool:
    return get_file_extension(filename) in IMAGE_EXTENSIONS


def is_pdf_file(filename: str) -> bool:
    return get_file_extension(filename) == 'pdf'


def generate_unique_file_name(user_id, document_type: str, original_file_name: str, now=None) -> str:
    """<user_id>_<document_type>_<YYYY-MM-DDTHH-MM-SS>.<ext> (UTC timestamp)."""
    now = now or timezone.now()
    timestamp = now.astimezone(dt_timezone.utc).strftime('%Y-%m-%dT%H-%M-%S')
    return f"{user_id}_{document_type}_{timestamp}.{get_file_extension(original_file_name)}"


def get_bucket_name(document_type: str) -> str:
    if document_type == LAB_REPORTS:
        return settings.MINIO_LAB_REPORTS_BUCKET
    return settings.MINIO_AADHAAR_BUCKET


def format_file_size(size_bytes) -> str:
    """
    Human readable size with 1024 steps: 0 -> "0 Bytes", 1536 -> "1.5 KB".
    """
    if not size_bytes:
        return '0 Bytes'

    index = int(math.floor(math.log(size_bytes) / math.log(1024)))
    index = max(0, min(index, len(SIZE_UNITS) - 1))
    value = f"{size_bytes / 1024 ** index:.2f}".rstrip('0').rstrip('.')
    return f"{value} {SIZE_UNITS[index]}"


def upload_document(file, user_id, document_type: str) -> UploadedDocument:
    """
    Validate and store a registration document.

    Raises:
        DocumentValidationError: File rejected by validate_file
        StorageError: If MinIO operation fails
    """
    validate_file(file)

    file_name = generate_unique_file_name(user_id, document_type, file.name)
    path = f"{user_id}/{file_name}"
    bucket = get_bucket_name(document_type)

    client = get_minio_client()
    try:
        client.put_object(
            bucket_name=bucket,
            object_name=path,
            data=file,
            length=file.size,
            content_type=file.content_type,
        )
    except S3Error as e:
        logger.error(
            'Registration document upload failed',
            extra={'event': 'document_upload_failed', 'bucket': bucket, 'error': str(e)}
        )
        raise StorageError(f"Failed to upload {document_type}: {e}")

    logger.info(
        'Registration document uploaded',
        extra={'event': 'document_uploaded', 'bucket': bucket, 'object_key': path}
    )
    return UploadedDocument(bucket=bucket, path=path)


def download_document(file_path: str, document_type: str) -> bytes:
    """
    Read an object fully into memory.

    Raises:
        StorageError: If MinIO operation fails
    """
    client = get_minio_client()
    response = None
    try:
        response = client.get_object(get_bucket_name(document_type), file_path)
        return response.read()
    except S3Error as e:
        raise StorageError(f"Failed to download {document_type}: {e}")
    finally:
        if response is not None:
            response.close()
            response.release_conn()


def delete_document(file_path: str, document_type: str) -> bool:
    """
    Remove an object from its bucket.

    Raises:
        StorageError: If MinIO operation fails
    """
    client = get_minio_client()
    try:
        client.remove_object(get_bucket_name(document_type), file_path)
    except S3Error as e:
        raise StorageError(f"Failed to delete {document_type}: {e}")
    return True


def get_signed_url(file_path: str, document_type: str, expires_in: int = 3600) -> str:
    """
    Presigned GET URL for a private document.

    Raises:
        StorageError: If MinIO operation fails
    """
    return utils_storage.generate_presigned_get_url(
        get_bucket_name(document_type),
        file_path,
        expires=timedelta(seconds=expires_in),
    )


def _object_info(obj) -> dict:
    return {
        'name': obj.object_name,
        'size': obj.size,
        'content_type': obj.content_type,
        'last_modified': obj.last_modified,
    }


def list_user_documents(user_id, document_type: str) -> List[dict]:
    """
    Objects stored for a user, newest first (at most LIST_LIMIT).

    Raises:
        StorageError: If MinIO operation fails
    """
    client = get_minio_client()
    try:
        objects = [
            _object_info(obj)
            for obj in client.list_objects(get_bucket_name(document_type), prefix=f"{user_id}/")
        ]
    except S3Error as e:
        raise StorageError(f"Failed to list {document_type}: {e}")

    objects.sort(key=lambda item: item['last_modified'] or timezone.now(), reverse=True)
    return objects[:LIST_LIMIT]


def get_file_info(file_path: str, document_type: str) -> Optional[dict]:
    """
    Stored object metadata, or None when the object does not exist.

    Raises:
        StorageError: If MinIO operation fails for any other reason
    """
    client = get_minio_client()
    try:
        return _object_info(client.stat_object(get_bucket_name(document_type), file_path))
    except S3Error as e:
        if e.code in ('NoSuchKey', 'NoSuchObject'):
            return None
        raise StorageError(f"Failed to get file info for {document_type}: {e}")
