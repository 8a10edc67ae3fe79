"""
Tests for the clinical REST API.

Endpoints tested:
- GET  /api/v1/clinical/patients/{id}/snapshot/
- GET  /api/v1/clinical/patients/{id}/reports/
- POST /api/v1/clinical/patients/{id}/reports/ (multipart upload)
- POST /api/v1/clinical/reports/{id}/delete/
- POST /api/v1/clinical/patients/{id}/reports/mark-reviewed/
- POST /api/v1/clinical/patients/{id}/reports/lock/
- POST /api/v1/clinical/patients/{id}/prescriptions/
- GET/POST /api/v1/clinical/patients/{id}/ai-summary/
- POST /api/v1/clinical/patients/{id}/ai-summary/chat/

Permissions:
- Admin/Doctor: all endpoints, any patient
- Patient: list/upload/delete own reports only
"""
import uuid
from unittest.mock import MagicMock, patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from apps.clinical.models import Consultation, PatientReport

BASE = '/api/v1/clinical'
WEBHOOK_POST = 'apps.clinical.ai_summary.requests.post'


def _webhook_response(body):
    response = MagicMock(ok=True, status_code=200)
    response.json.return_value = body
    return response


@pytest.mark.django_db
class TestSnapshot:

    def test_doctor_gets_patient_vitals_and_reports(self, doctor_client, patient, vitals, report):
        response = doctor_client.get(f'{BASE}/patients/{patient.id}/snapshot/')

        assert response.status_code == 200
        assert response.data['patient']['full_name'] == 'Asha Verma'
        assert response.data['patient']['profile_image_url'] == 'https://minio.test/patient-profile-images/asha.jpg?signed=1'
        assert response.data['patient']['profile_image_url_resolved'] is True
        assert response.data['vitals']['blood_pressure'] == '120/80'
        assert [r['id'] for r in response.data['reports']] == [str(report.id)]

    def test_unknown_patient_404(self, doctor_client):
        response = doctor_client.get(f'{BASE}/patients/{uuid.uuid4()}/snapshot/')

        assert response.status_code == 404
        assert response.data == {'error': 'Patient not found'}

    def test_patient_role_forbidden(self, patient_client, patient):
        response = patient_client.get(f'{BASE}/patients/{patient.id}/snapshot/')

        assert response.status_code == 403

    def test_anonymous_rejected(self, api_client, patient):
        response = api_client.get(f'{BASE}/patients/{patient.id}/snapshot/')

        assert response.status_code == 401


@pytest.mark.django_db
class TestReportList:

    def test_list_serializes_signed_url(self, doctor_client, patient, report):
        response = doctor_client.get(f'{BASE}/patients/{patient.id}/reports/')

        assert response.status_code == 200
        item = response.data['reports'][0]
        assert item['file_url'] == f'https://minio.test/patient-reports/{report.file_url}?signed=1'
        assert item['file_url_resolved'] is True
        assert item['file_size_display'] == '2 KB'

    def test_unresolved_url_flagged(self, doctor_client, patient, report, signed_urls):
        signed_urls.side_effect = Exception('timeout')

        response = doctor_client.get(f'{BASE}/patients/{patient.id}/reports/')

        item = response.data['reports'][0]
        assert item['file_url'] == report.file_url
        assert item['file_url_resolved'] is False

    def test_patient_sees_own_reports(self, patient_client, patient, report):
        response = patient_client.get(f'{BASE}/patients/{patient.id}/reports/')

        assert response.status_code == 200
        assert len(response.data['reports']) == 1

    def test_patient_cannot_see_other_patient(self, patient_client, other_patient):
        response = patient_client.get(f'{BASE}/patients/{other_patient.id}/reports/')

        assert response.status_code == 403


@pytest.mark.django_db
class TestReportUpload:

    @patch('apps.clinical.utils_storage.get_minio_client')
    def test_multipart_upload(self, mock_client, doctor_client, patient):
        mock_client.return_value = MagicMock()
        upload = SimpleUploadedFile('xray.jpg', b'\xff\xd8' * 100, content_type='image/jpeg')

        response = doctor_client.post(
            f'{BASE}/patients/{patient.id}/reports/',
            {'file': upload, 'report_name': 'Chest X-ray', 'report_type': 'imaging'},
            format='multipart'
        )

        assert response.status_code == 201
        report = PatientReport.objects.get(id=response.data['report_id'])
        assert report.report_type == 'imaging'
        assert report.file_size == 200
        assert [r['id'] for r in response.data['reports']] == [str(report.id)]

    def test_storage_failure_is_502(self, doctor_client, patient):
        from apps.clinical.utils_storage import StorageError

        upload = SimpleUploadedFile('cbc.pdf', b'%PDF', content_type='application/pdf')
        with patch('apps.clinical.reports.upload_object', side_effect=StorageError('down')):
            response = doctor_client.post(
                f'{BASE}/patients/{patient.id}/reports/',
                {'file': upload, 'report_name': 'CBC', 'report_type': 'lab_report'},
                format='multipart'
            )

        assert response.status_code == 502
        assert 'error' in response.data
        assert PatientReport.objects.count() == 0


@pytest.mark.django_db
class TestReportDelete:

    def test_doctor_soft_deletes_with_reason(self, doctor_client, patient, report):
        response = doctor_client.post(f'{BASE}/reports/{report.id}/delete/', {'reason': 'Duplicate'}, format='json')

        assert response.status_code == 200
        assert response.data['reports'] == []
        report.refresh_from_db()
        assert report.is_deleted is True
        assert report.deleted_by_role == 'doctor'

    def test_patient_deletes_own_report(self, patient_client, patient, report):
        response = patient_client.post(f'{BASE}/reports/{report.id}/delete/', {'reason': 'Wrong file'}, format='json')

        assert response.status_code == 200
        report.refresh_from_db()
        assert report.deleted_by_role == 'patient'

    def test_missing_reason_is_400(self, doctor_client, report):
        response = doctor_client.post(f'{BASE}/reports/{report.id}/delete/', {}, format='json')

        assert response.status_code == 400
        assert response.data == {'error': 'A reason is required to delete a report'}

    def test_locked_report_is_403(self, doctor_client, patient, make_report):
        report = make_report(patient, locked=True)

        response = doctor_client.post(f'{BASE}/reports/{report.id}/delete/', {'reason': 'Cleanup'}, format='json')

        assert response.status_code == 403
        assert response.data == {'error': 'This report is locked and cannot be deleted'}

    def test_patient_cannot_delete_other_patients_report(self, patient_client, other_patient, make_report):
        report = make_report(other_patient)

        response = patient_client.post(f'{BASE}/reports/{report.id}/delete/', {'reason': 'x'}, format='json')

        assert response.status_code == 403


@pytest.mark.django_db
class TestReviewAndLockEndpoints:

    def test_mark_reviewed(self, doctor_client, doctor_user, patient, report):
        response = doctor_client.post(
            f'{BASE}/patients/{patient.id}/reports/mark-reviewed/',
            {'report_ids': [str(report.id)]},
            format='json'
        )

        assert response.status_code == 200
        assert response.data['updated'] == 1
        report.refresh_from_db()
        assert report.reviewed_by == doctor_user

    def test_lock_with_empty_selection(self, doctor_client, patient, report):
        response = doctor_client.post(f'{BASE}/patients/{patient.id}/reports/lock/', {'report_ids': []}, format='json')

        assert response.status_code == 200
        assert response.data['updated'] == 0
        assert len(response.data['reports']) == 1

    def test_lock_with_unknown_consultation_is_400(self, doctor_client, patient, report):
        response = doctor_client.post(
            f'{BASE}/patients/{patient.id}/reports/lock/',
            {'report_ids': [str(report.id)], 'consultation_id': str(uuid.uuid4())},
            format='json'
        )

        assert response.status_code == 400
        assert response.data == {'error': 'Consultation not found for this patient'}
        report.refresh_from_db()
        assert report.locked is False

    def test_patient_cannot_lock(self, patient_client, patient, report):
        response = patient_client.post(
            f'{BASE}/patients/{patient.id}/reports/lock/',
            {'report_ids': [str(report.id)]},
            format='json'
        )

        assert response.status_code == 403


@pytest.mark.django_db
class TestPrescriptionEndpoint:

    def _payload(self, **overrides):
        payload = {
            'chief_complaint': 'Cough',
            'diagnosis': 'Bronchitis',
            'medications': [
                {'medicine_name': 'Amoxicillin', 'dosage': '500mg', 'frequency': 'TID', 'duration': '7 days'},
                {'medicine_name': '', 'dosage': '', 'frequency': '', 'duration': ''},
            ],
        }
        payload.update(overrides)
        return payload

    def test_save_locks_selected_reports_with_consultation_id(self, doctor_client, patient, report):
        response = doctor_client.post(
            f'{BASE}/patients/{patient.id}/prescriptions/',
            self._payload(report_ids=[str(report.id)], follow_up_date='2026-11-20'),
            format='json'
        )

        assert response.status_code == 201
        assert response.data['locked_report_count'] == 1
        assert response.data['follow_up_appointment_id'] is not None
        report.refresh_from_db()
        assert report.locked is True
        assert str(report.linked_consultation_id) == response.data['consultation_id']

    def test_each_request_saves_its_own_form(self, doctor_client, patient):
        url = f'{BASE}/patients/{patient.id}/prescriptions/'

        first = doctor_client.post(url, self._payload(), format='json')
        second = doctor_client.post(url, self._payload(), format='json')

        assert first.status_code == second.status_code == 201
        assert first.data['consultation_id'] != second.data['consultation_id']
        assert Consultation.objects.count() == 2

    def test_validation_error_is_400(self, doctor_client, patient):
        response = doctor_client.post(
            f'{BASE}/patients/{patient.id}/prescriptions/',
            self._payload(medications=[]),
            format='json'
        )

        assert response.status_code == 400
        assert response.data == {'error': 'At least one valid medication is required'}
        assert Consultation.objects.count() == 0

    def test_admin_without_doctor_profile_forbidden(self, admin_client, patient):
        response = admin_client.post(f'{BASE}/patients/{patient.id}/prescriptions/', self._payload(), format='json')

        assert response.status_code == 403

    def test_patient_forbidden(self, patient_client, patient):
        response = patient_client.post(f'{BASE}/patients/{patient.id}/prescriptions/', self._payload(), format='json')

        assert response.status_code == 403


@pytest.mark.django_db
class TestAISummaryEndpoints:

    def test_generate_then_restore_from_session(self, doctor_client, patient, report):
        url = f'{BASE}/patients/{patient.id}/ai-summary/'

        with patch(WEBHOOK_POST, return_value=_webhook_response({'summary': '<p>All normal</p>', 'extracted_text': 'Hb 14'})):
            generated = doctor_client.post(url, {'report_ids': [str(report.id)]}, format='json')

        assert generated.status_code == 200
        assert generated.data['summary_html'] == '<p>All normal</p>'
        assert generated.data['has_extracted_text'] is True

        with patch(WEBHOOK_POST) as mock_post:
            restored = doctor_client.get(url, {'report_ids': str(report.id)})

        mock_post.assert_not_called()
        assert restored.status_code == 200
        assert restored.data['summary_html'] == '<p>All normal</p>'
        assert restored.data['from_cache'] is True

    def test_restore_without_cache_returns_null(self, doctor_client, patient, report):
        response = doctor_client.get(f'{BASE}/patients/{patient.id}/ai-summary/', {'report_ids': str(report.id)})

        assert response.status_code == 200
        assert response.data['summary_html'] is None

    def test_empty_selection_is_400(self, doctor_client, patient):
        response = doctor_client.post(f'{BASE}/patients/{patient.id}/ai-summary/', {'report_ids': []}, format='json')

        assert response.status_code == 400
        assert response.data == {'error': 'Select at least one report to generate AI analysis.'}

    def test_webhook_failure_is_502(self, doctor_client, patient, report):
        failing = MagicMock(ok=False, status_code=500)
        with patch(WEBHOOK_POST, return_value=failing):
            response = doctor_client.post(
                f'{BASE}/patients/{patient.id}/ai-summary/',
                {'report_ids': [str(report.id)]},
                format='json'
            )

        assert response.status_code == 502

    def test_chat_after_summary(self, doctor_client, patient, report):
        with patch(WEBHOOK_POST, return_value=_webhook_response({'summary': '<p>ok</p>', 'extracted_text': 'Hb 14'})):
            doctor_client.post(f'{BASE}/patients/{patient.id}/ai-summary/', {'report_ids': [str(report.id)]}, format='json')

        with patch(WEBHOOK_POST, return_value=_webhook_response({'answer': 'Hb is normal', 'confidence': 'high'})):
            response = doctor_client.post(
                f'{BASE}/patients/{patient.id}/ai-summary/chat/',
                {'question': 'Is Hb normal?', 'report_ids': [str(report.id)]},
                format='json'
            )

        assert response.status_code == 200
        assert response.data['answer'] == 'Hb is normal'
        assert len(response.data['history']) == 2

    def test_chat_before_summary_is_400(self, doctor_client, patient, report):
        response = doctor_client.post(
            f'{BASE}/patients/{patient.id}/ai-summary/chat/',
            {'question': 'Is Hb normal?', 'report_ids': [str(report.id)]},
            format='json'
        )

        assert response.status_code == 400
        assert response.data == {'error': 'Please generate AI Summary first before using chat.'}

    def test_patient_forbidden(self, patient_client, patient, report):
        response = patient_client.post(
            f'{BASE}/patients/{patient.id}/ai-summary/',
            {'report_ids': [str(report.id)]},
            format='json'
        )

        assert response.status_code == 403
