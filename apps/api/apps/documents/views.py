"""
Registration documents API.

Patients manage their own pre-registration documents; doctors and admins
can read everyone's.
"""
import logging

from django.http import HttpResponse
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.authz.permissions import get_user_roles
from apps.authz.models import RoleChoices
from apps.clinical.utils_storage import StorageError
from apps.core.observability.correlation import bind_user
from apps.core.observability.events import log_domain_event
from .models import DocumentTypeChoices, RegistrationDocument
from .serializers import (
    RegistrationDocumentSerializer,
    RegistrationDocumentUploadSerializer,
    StoredObjectSerializer,
)
from .storage import (
    DocumentValidationError,
    delete_document,
    download_document,
    get_file_info,
    get_signed_url,
    list_user_documents,
    upload_document,
)

logger = logging.getLogger(__name__)

SIGNED_URL_DEFAULT_SECONDS = 3600
MIN_SIGNED_URL_SECONDS = 60
# MinIO rejects presigned URLs valid for more than seven days
MAX_SIGNED_URL_SECONDS = 7 * 24 * 3600


def _is_staff_reader(user):
    roles = get_user_roles(user)
    return user.is_superuser or bool(roles & {RoleChoices.ADMIN, RoleChoices.DOCTOR})


class RegistrationDocumentViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Endpoints:
    - GET    /api/v1/documents/ - List documents (?document_type=, ?user_id= for staff)
    - POST   /api/v1/documents/ - Upload a document (multipart: file, document_type)
    - GET    /api/v1/documents/{id}/ - Detail with signed URL
    - DELETE /api/v1/documents/{id}/ - Remove the object and soft delete the row
    - GET    /api/v1/documents/{id}/download/ - Stream the stored bytes
    - GET    /api/v1/documents/{id}/info/ - Stored object metadata
    - GET    /api/v1/documents/{id}/signed-url/?expires_in= - Presigned URL with a chosen lifetime
    - GET    /api/v1/documents/files/?document_type= - Objects stored for the current user
    """
    serializer_class = RegistrationDocumentSerializer
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        bind_user(request.user)

    def get_queryset(self):
        queryset = RegistrationDocument.objects.filter(is_deleted=False)
        user = self.request.user

        if _is_staff_reader(user):
            user_id = self.request.query_params.get('user_id')
            if user_id:
                queryset = queryset.filter(user_id=user_id)
        else:
            queryset = queryset.filter(user=user)

        document_type = self.request.query_params.get('document_type')
        if document_type:
            queryset = queryset.filter(document_type=document_type)

        return queryset.select_related('user')

    def create(self, request):
        serializer = RegistrationDocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        file = serializer.validated_data['file']
        document_type = serializer.validated_data['document_type']

        try:
            stored = upload_document(file, request.user.id, document_type)
        except DocumentValidationError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except StorageError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        document = RegistrationDocument.objects.create(
            user=request.user,
            document_type=document_type,
            bucket=stored.bucket,
            object_key=stored.path,
            original_filename=file.name,
            content_type=file.content_type,
            size_bytes=file.size,
        )
        log_domain_event(
            'registration_document_uploaded',
            entity_type='RegistrationDocument',
            entity_id=str(document.id),
            document_type=document_type,
            size_bytes=file.size,
        )

        return Response(
            RegistrationDocumentSerializer(document).data,
            status=status.HTTP_201_CREATED
        )

    def destroy(self, request, pk=None):
        document = self.get_object()
        if document.user_id != request.user.id and RoleChoices.ADMIN not in get_user_roles(request.user):
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

        try:
            delete_document(document.object_key, document.document_type)
        except StorageError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        document.is_deleted = True
        document.deleted_at = timezone.now()
        document.save(update_fields=['is_deleted', 'deleted_at', 'updated_at'])
        log_domain_event(
            'registration_document_deleted',
            entity_type='RegistrationDocument',
            entity_id=str(document.id),
        )

        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['get'])
    def download(self, request, pk=None):
        document = self.get_object()
        try:
            content = download_document(document.object_key, document.document_type)
        except StorageError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        response = HttpResponse(content, content_type=document.content_type)
        response['Content-Disposition'] = f'attachment; filename="{document.original_filename}"'
        return response

    @action(detail=True, methods=['get'])
    def info(self, request, pk=None):
        document = self.get_object()
        try:
            stored = get_file_info(document.object_key, document.document_type)
        except StorageError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        if stored is None:
            return Response({'error': 'Stored file not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(StoredObjectSerializer(stored).data)

    @action(detail=True, methods=['get'], url_path='signed-url')
    def signed_url(self, request, pk=None):
        document = self.get_object()
        try:
            expires_in = int(request.query_params.get('expires_in', SIGNED_URL_DEFAULT_SECONDS))
        except ValueError:
            return Response({'error': 'expires_in must be a number of seconds'}, status=status.HTTP_400_BAD_REQUEST)
        if not MIN_SIGNED_URL_SECONDS <= expires_in <= MAX_SIGNED_URL_SECONDS:
            return Response(
                {'error': f'expires_in must be between {MIN_SIGNED_URL_SECONDS} and {MAX_SIGNED_URL_SECONDS}'},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            url = get_signed_url(document.object_key, document.document_type, expires_in=expires_in)
        except StorageError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({'signed_url': url, 'expires_in': expires_in})

    @action(detail=False, methods=['get'])
    def files(self, request):
        document_type = request.query_params.get('document_type', DocumentTypeChoices.LAB_REPORTS)
        if document_type not in DocumentTypeChoices.values:
            return Response({'error': f'Invalid document type: {document_type}'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            objects = list_user_documents(request.user.id, document_type)
        except StorageError as e:
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        return Response(StoredObjectSerializer(objects, many=True).data)
