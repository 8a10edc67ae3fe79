"""
Registration document serializers.
"""
from rest_framework import serializers

from apps.clinical.utils_storage import resolve_signed_url
from .models import DocumentTypeChoices, RegistrationDocument
from .storage import format_file_size, is_image_file, is_pdf_file


class RegistrationDocumentSerializer(serializers.ModelSerializer):
    """
    Read serializer; signed_url is None when the object could not be signed.
    """
    signed_url = serializers.SerializerMethodField()
    file_size_display = serializers.SerializerMethodField()
    is_image = serializers.SerializerMethodField()
    is_pdf = serializers.SerializerMethodField()

    class Meta:
        model = RegistrationDocument
        fields = [
            'id',
            'user',
            'document_type',
            'bucket',
            'object_key',
            'original_filename',
            'content_type',
            'size_bytes',
            'file_size_display',
            'is_image',
            'is_pdf',
            'signed_url',
            'created_at',
        ]
        read_only_fields = fields

    def get_signed_url(self, obj):
        signed = resolve_signed_url(obj.bucket, obj.object_key)
        return signed.url if signed is not None and signed.resolved else None

    def get_file_size_display(self, obj):
        return format_file_size(obj.size_bytes)

    def get_is_image(self, obj):
        return is_image_file(obj.original_filename)

    def get_is_pdf(self, obj):
        return is_pdf_file(obj.original_filename)


class RegistrationDocumentUploadSerializer(serializers.Serializer):
    """Multipart body of POST /documents/."""
    file = serializers.FileField()
    document_type = serializers.ChoiceField(choices=DocumentTypeChoices.choices)


class StoredObjectSerializer(serializers.Serializer):
    name = serializers.CharField()
    size = serializers.IntegerField(allow_null=True)
    content_type = serializers.CharField(allow_null=True)
    last_modified = serializers.DateTimeField(allow_null=True)
