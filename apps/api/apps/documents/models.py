"""
Documents models: registration documents uploaded during patient pre-registration.
"""
import uuid
from django.db import models
from django.conf import settings


class DocumentTypeChoices(models.TextChoices):
    """Registration document types (one bucket each)"""
    LAB_REPORTS = 'lab_reports', 'Lab Reports'
    AADHAAR = 'aadhaar', 'Aadhaar'


class RegistrationDocument(models.Model):
    """
    Pre-registration document (lab report or Aadhaar card) stored in MinIO.

    - id: UUID PK
    - user_id: FK -> auth_user (owner)
    - document_type: lab_reports | aadhaar
    - bucket: lab-reports | aadhaar-documents
    - object_key: <user_id>/<user_id>_<type>_<timestamp>.<ext>
    - original_filename, content_type, size_bytes

    Soft delete fields:
    - is_deleted: bool default false
    - deleted_at: nullable

    The stored object is removed from MinIO when the row is soft-deleted.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='registration_documents',
        help_text="User who uploaded this document"
    )
    document_type = models.CharField(
        max_length=20,
        choices=DocumentTypeChoices.choices
    )

    # Storage fields
    bucket = models.CharField(
        max_length=64,
        editable=False,
        help_text="MinIO bucket the object was written to"
    )
    object_key = models.CharField(
        max_length=512,
        help_text="MinIO object key (path) within the bucket"
    )
    original_filename = models.CharField(max_length=255)
    content_type = models.CharField(
        max_length=128,
        help_text="MIME type (application/pdf or image/jpeg)"
    )
    size_bytes = models.BigIntegerField(
        help_text="File size in bytes"
    )

    # Soft delete fields
    is_deleted = models.BooleanField(
        default=False,
        help_text="Soft delete flag"
    )
    deleted_at = models.DateTimeField(
        blank=True,
        null=True,
        help_text="When the document was soft-deleted"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'registration_documents'
        verbose_name = 'Registration Document'
        verbose_name_plural = 'Registration Documents'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'document_type'], name='idx_regdoc_user_type'),
            models.Index(fields=['is_deleted'], name='idx_regdoc_deleted'),
        ]

    def __str__(self):
        return f"{self.get_document_type_display()}: {self.original_filename}"
