"""
Clinical REST API: patient snapshot, report worklist, prescriptions, AI summary.

Every error response is {'error': message}.
"""
import logging

from django.db import DatabaseError
from rest_framework import viewsets, status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.clinical.ai_summary import (
    AISummaryError,
    AISummaryInputError,
    AISummaryOrchestrator,
    ReportChat,
)
from apps.clinical.models import Patient, PatientReport
from apps.clinical.patient_data import PatientDetailsRepository, PatientVitalsRepository
from apps.clinical.permissions import (
    IsClinicalStaff,
    ReportPermission,
    actor_role,
    can_access_patient,
)
from apps.clinical.prescriptions import PrescriptionForm
from apps.clinical.reports import (
    PatientReportRepository,
    ReportActorError,
    ReportLockedError,
    ReportRepositoryError,
    ReportUploadError,
    ReportValidationError,
)
from apps.clinical.serializers import (
    AISummaryRequestSerializer,
    LockReportsSerializer,
    PatientDetailSerializer,
    PatientReportSerializer,
    PatientVitalsSerializer,
    PrescriptionSaveSerializer,
    ReportChatSerializer,
    ReportDeleteSerializer,
    ReportIdsSerializer,
    ReportUploadSerializer,
)
from apps.core.observability.correlation import bind_user

logger = logging.getLogger(__name__)


def _error(message, status_code):
    return Response({'error': message}, status=status_code)


def _get_patient(patient_id):
    return Patient.objects.filter(id=patient_id).first()


def _doctor_of(user):
    """Doctor profile of the user, or None."""
    return getattr(user, 'doctor', None)


class CorrelatedAPIMixin:
    """Binds the JWT-authenticated user to the log correlation context."""

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        bind_user(request.user)


class PatientSnapshotView(CorrelatedAPIMixin, APIView):
    """
    GET /api/v1/clinical/patients/{patient_id}/snapshot/

    Patient header, latest vitals and active report worklist in one call.
    """
    permission_classes = [IsAuthenticated, IsClinicalStaff]

    def get(self, request, patient_id=None):
        details = PatientDetailsRepository(patient_id)
        if details.error:
            return _error(details.error, status.HTTP_500_INTERNAL_SERVER_ERROR)
        if details.data is None:
            return _error('Patient not found', status.HTTP_404_NOT_FOUND)

        vitals = PatientVitalsRepository(patient_id)
        reports = PatientReportRepository(patient_id)
        try:
            reports.fetch()
        except ReportRepositoryError as e:
            return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({
            'patient': PatientDetailSerializer(details.data).data,
            'vitals': PatientVitalsSerializer(vitals.data).data if vitals.data else None,
            'vitals_error': vitals.error,
            'reports': PatientReportSerializer(reports.reports, many=True).data,
        })


class PatientReportViewSet(CorrelatedAPIMixin, viewsets.ViewSet):
    """
    Report worklist of a patient.

    Endpoints:
    - GET  /patients/{patient_id}/reports/ - Active worklist
    - POST /patients/{patient_id}/reports/ - Upload a report (multipart)
    - POST /reports/{pk}/delete/ - Soft delete with a reason
    - POST /patients/{patient_id}/reports/mark-reviewed/ - Mark reports reviewed (staff)
    - POST /patients/{patient_id}/reports/lock/ - Lock reports (staff)

    Patients may list, upload and delete their own reports only.
    """
    permission_classes = [IsAuthenticated, ReportPermission]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get_permissions(self):
        if self.action in ('mark_reviewed', 'lock'):
            return [IsAuthenticated(), IsClinicalStaff()]
        return super().get_permissions()

    def _patient_or_error(self, request, patient_id):
        patient = _get_patient(patient_id)
        if patient is None:
            return None, _error('Patient not found', status.HTTP_404_NOT_FOUND)
        if not can_access_patient(request.user, patient):
            return None, _error('Permission denied', status.HTTP_403_FORBIDDEN)
        return patient, None

    def _reports_response(self, repository, status_code=status.HTTP_200_OK, **extra):
        data = {'reports': PatientReportSerializer(repository.reports, many=True).data}
        data.update(extra)
        return Response(data, status=status_code)

    def list(self, request, patient_id=None):
        patient, error = self._patient_or_error(request, patient_id)
        if error:
            return error

        repository = PatientReportRepository(patient.id)
        try:
            repository.fetch()
        except ReportRepositoryError as e:
            return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
        return self._reports_response(repository)

    def create(self, request, patient_id=None):
        patient, error = self._patient_or_error(request, patient_id)
        if error:
            return error

        serializer = ReportUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        repository = PatientReportRepository(patient.id)
        try:
            report = repository.upload(
                serializer.validated_data['file'],
                serializer.validated_data['report_name'],
                serializer.validated_data['report_type'],
                request.user,
            )
        except ReportValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)
        except ReportUploadError as e:
            return _error(f'Upload failed: {e}', status.HTTP_502_BAD_GATEWAY)
        except ReportRepositoryError as e:
            return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

        return self._reports_response(repository, status.HTTP_201_CREATED, report_id=str(report.id))

    def soft_delete(self, request, pk=None):
        report = PatientReport.objects.select_related('patient').filter(id=pk, is_deleted=False).first()
        if report is None:
            return _error('Report not found', status.HTTP_404_NOT_FOUND)
        if not can_access_patient(request.user, report.patient):
            return _error('Permission denied', status.HTTP_403_FORBIDDEN)

        serializer = ReportDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        repository = PatientReportRepository(report.patient_id)
        try:
            repository.delete(
                report.id,
                serializer.validated_data['reason'],
                actor_role(request.user),
                request.user,
            )
        except ReportValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)
        except ReportActorError as e:
            return _error(str(e), status.HTTP_401_UNAUTHORIZED)
        except ReportLockedError as e:
            return _error(str(e), status.HTTP_403_FORBIDDEN)
        except PatientReport.DoesNotExist:
            return _error('Report not found', status.HTTP_404_NOT_FOUND)

        return self._reports_response(repository)

    def mark_reviewed(self, request, patient_id=None):
        patient, error = self._patient_or_error(request, patient_id)
        if error:
            return error

        serializer = ReportIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        repository = PatientReportRepository(patient.id)
        updated = repository.mark_reviewed(serializer.validated_data['report_ids'], request.user)
        if not updated:
            repository.fetch()
        return self._reports_response(repository, updated=updated)

    def lock(self, request, patient_id=None):
        patient, error = self._patient_or_error(request, patient_id)
        if error:
            return error

        serializer = LockReportsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        repository = PatientReportRepository(patient.id)
        try:
            updated = repository.lock(
                serializer.validated_data['report_ids'],
                serializer.validated_data.get('consultation_id'),
            )
        except ReportValidationError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)
        if not updated:
            repository.fetch()
        return self._reports_response(repository, updated=updated)


class PrescriptionSaveView(CorrelatedAPIMixin, APIView):
    """
    POST /api/v1/clinical/patients/{patient_id}/prescriptions/

    Saves consultation + prescription + items (and the follow-up appointment
    when a follow-up date is given), then locks the selected reports against
    the new consultation.
    """
    permission_classes = [IsAuthenticated, IsClinicalStaff]

    def post(self, request, patient_id=None):
        doctor = _doctor_of(request.user)
        if doctor is None or not doctor.is_active:
            return _error('Only active doctors can save prescriptions', status.HTTP_403_FORBIDDEN)

        patient = _get_patient(patient_id)
        if patient is None:
            return _error('Patient not found', status.HTTP_404_NOT_FOUND)

        serializer = PrescriptionSaveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        # One form per request; the re-entrant save guard only matters to long-lived forms
        form = PrescriptionForm.from_data(data)
        result = form.save(patient.id, doctor.id, appointment_id=data.get('appointment_id'))

        if not result.success:
            status_code = status.HTTP_400_BAD_REQUEST if result.is_validation_error else status.HTTP_500_INTERNAL_SERVER_ERROR
            return _error(result.error, status_code)

        repository = PatientReportRepository(patient.id)
        try:
            locked = repository.lock(data['report_ids'], result.consultation_id)
        except (DatabaseError, ReportRepositoryError) as e:
            logger.error(
                'Reports could not be locked after prescription save',
                extra={
                    'event': 'report_lock_failed',
                    'consultation_id': result.consultation_id,
                    'error': str(e),
                }
            )
            locked = 0

        return Response({
            'consultation_id': result.consultation_id,
            'follow_up_appointment_id': result.follow_up_appointment_id,
            'locked_report_count': locked,
        }, status=status.HTTP_201_CREATED)


class AISummaryView(CorrelatedAPIMixin, APIView):
    """
    GET  /api/v1/clinical/patients/{patient_id}/ai-summary/?report_ids=a,b
         Restore the cached summary of a selection (no AI call)
    POST /api/v1/clinical/patients/{patient_id}/ai-summary/
         Generate a summary for {"report_ids": [...]}
    """
    permission_classes = [IsAuthenticated, IsClinicalStaff]

    @staticmethod
    def _result_data(result):
        if result is None:
            return {'summary_html': None, 'has_extracted_text': False, 'report_ids': [], 'from_cache': False}
        return {
            'summary_html': result.summary_html,
            'has_extracted_text': bool(result.extracted_text),
            'report_ids': result.report_ids,
            'from_cache': result.from_cache,
        }

    def get(self, request, patient_id=None):
        if _get_patient(patient_id) is None:
            return _error('Patient not found', status.HTTP_404_NOT_FOUND)

        raw_ids = request.query_params.get('report_ids', '')
        serializer = AISummaryRequestSerializer(data={
            'report_ids': [value for value in raw_ids.split(',') if value.strip()],
        })
        serializer.is_valid(raise_exception=True)

        orchestrator = AISummaryOrchestrator(request.session)
        result = orchestrator.restore(patient_id, serializer.validated_data['report_ids'])
        return Response(self._result_data(result))

    def post(self, request, patient_id=None):
        patient = _get_patient(patient_id)
        if patient is None:
            return _error('Patient not found', status.HTTP_404_NOT_FOUND)

        serializer = AISummaryRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        doctor = _doctor_of(request.user)
        doctor_id = doctor.id if doctor else request.user.id

        orchestrator = AISummaryOrchestrator(request.session)
        try:
            result = orchestrator.generate(patient.id, doctor_id, serializer.validated_data['report_ids'])
        except AISummaryInputError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)
        except AISummaryError as e:
            return _error(str(e), status.HTTP_502_BAD_GATEWAY)

        return Response(self._result_data(result))


class ReportChatView(CorrelatedAPIMixin, APIView):
    """
    POST /api/v1/clinical/patients/{patient_id}/ai-summary/chat/

    Ask a question about the reports of the last generated summary.
    """
    permission_classes = [IsAuthenticated, IsClinicalStaff]

    def post(self, request, patient_id=None):
        patient = _get_patient(patient_id)
        if patient is None:
            return _error('Patient not found', status.HTTP_404_NOT_FOUND)

        serializer = ReportChatSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        doctor = _doctor_of(request.user)
        doctor_id = doctor.id if doctor else request.user.id

        chat = ReportChat(request.session)
        try:
            answer = chat.ask(
                serializer.validated_data['question'],
                patient.id,
                doctor_id,
                serializer.validated_data['report_ids'],
            )
        except AISummaryInputError as e:
            return _error(str(e), status.HTTP_400_BAD_REQUEST)
        except AISummaryError as e:
            return _error(str(e), status.HTTP_502_BAD_GATEWAY)

        return Response({
            'answer': answer.answer,
            'confidence': answer.confidence,
            'history': answer.history,
        })
