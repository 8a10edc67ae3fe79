"""
Tests for the patient report repository.

Business Rules:
- The active worklist excludes deleted, locked and reviewed reports
- lab_report ages out after 180 days, imaging after 365; other types never
- Locked reports cannot be soft-deleted
- Signing failures keep the stored path (file_url_resolved = false)
- Empty mark_reviewed / lock selections touch nothing
"""
import uuid
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone

from apps.clinical.models import Consultation, PatientReport, ReportTypeChoices
from apps.clinical.reports import (
    PatientReportRepository,
    ReportActorError,
    ReportLockedError,
    ReportRepositoryError,
    ReportUploadError,
    ReportValidationError,
    is_in_active_worklist,
)
from apps.clinical.utils_storage import (
    ResolvedUrl,
    StorageError,
    UnresolvedUrl,
    generate_report_object_key,
)


def _consultation(patient, doctor):
    return Consultation.objects.create(
        patient=patient,
        doctor=doctor,
        chief_complaint='Fatigue',
        diagnosis='Anaemia',
        consultation_date=timezone.now(),
    )


@pytest.mark.django_db
class TestActiveWorklist:
    """Test the reviewed/age filter applied by fetch()"""

    def test_deleted_reports_never_listed(self, patient, make_report):
        visible = make_report(patient, report_name='Visible')
        make_report(patient, report_name='Gone', is_deleted=True, deleted_reason='Duplicate')

        reports = PatientReportRepository(patient.id).fetch()

        assert [r.id for r in reports] == [visible.id]

    def test_locked_and_reviewed_reports_excluded(self, patient, doctor_user, make_report):
        make_report(patient, report_name='Locked', locked=True)
        make_report(patient, report_name='Reviewed', reviewed_at=timezone.now(), reviewed_by=doctor_user)
        open_report = make_report(patient, report_name='Open')

        reports = PatientReportRepository(patient.id).fetch()

        assert [r.id for r in reports] == [open_report.id]

    def test_lab_report_ages_out_after_180_days(self, patient, make_report):
        recent = make_report(patient, report_name='Recent lab', age_days=179)
        make_report(patient, report_name='Old lab', age_days=181)

        reports = PatientReportRepository(patient.id).fetch()

        assert [r.id for r in reports] == [recent.id]

    def test_imaging_ages_out_after_365_days(self, patient, make_report):
        recent = make_report(patient, report_name='Recent scan', report_type=ReportTypeChoices.IMAGING, age_days=300)
        make_report(patient, report_name='Old scan', report_type=ReportTypeChoices.IMAGING, age_days=400)

        reports = PatientReportRepository(patient.id).fetch()

        assert [r.id for r in reports] == [recent.id]

    def test_other_types_never_age_out(self, patient, make_report):
        old = make_report(patient, report_name='Old referral', report_type=ReportTypeChoices.REFERRAL, age_days=2000)

        reports = PatientReportRepository(patient.id).fetch()

        assert [r.id for r in reports] == [old.id]

    def test_newest_first(self, patient, make_report):
        older = make_report(patient, report_name='Older', age_days=10)
        newer = make_report(patient, report_name='Newer', age_days=2)

        reports = PatientReportRepository(patient.id).fetch()

        assert [r.id for r in reports] == [newer.id, older.id]

    def test_is_in_active_worklist_uses_given_now(self, patient, make_report):
        report = make_report(patient, age_days=1)

        assert is_in_active_worklist(report)
        assert not is_in_active_worklist(report, now=timezone.now() + timedelta(days=200))

    def test_missing_patient_id_yields_empty_list(self, db):
        assert PatientReportRepository(None).fetch() == []


@pytest.mark.django_db
class TestSignedUrls:
    """Test signed URL resolution during fetch()"""

    def test_stored_path_is_signed(self, patient, report):
        reports = PatientReportRepository(patient.id).fetch()

        signed = reports[0].signed_file_url
        assert isinstance(signed, ResolvedUrl)
        assert signed.url == f'https://minio.test/patient-reports/{report.file_url}?signed=1'

    def test_http_path_kept_unchanged(self, patient, make_report, signed_urls):
        report = make_report(patient)
        PatientReport.objects.filter(id=report.id).update(file_url='https://cdn.example.com/report.pdf')

        reports = PatientReportRepository(patient.id).fetch()

        assert reports[0].signed_file_url == ResolvedUrl(url='https://cdn.example.com/report.pdf')
        signed_urls.assert_not_called()

    def test_signing_failure_keeps_original_path(self, patient, report, signed_urls):
        signed_urls.side_effect = StorageError('connection refused')

        reports = PatientReportRepository(patient.id).fetch()

        signed = reports[0].signed_file_url
        assert isinstance(signed, UnresolvedUrl)
        assert signed.url == report.file_url
        assert signed.resolved is False


@pytest.mark.django_db
class TestUpload:
    """Test PatientReportRepository.upload()"""

    def _file(self, name='cbc.pdf', size=1024, content_type='application/pdf'):
        return SimpleUploadedFile(name, b'x' * size, content_type=content_type)

    @patch('apps.clinical.utils_storage.get_minio_client')
    def test_upload_stores_object_and_inserts_row(self, mock_client, patient, doctor_user):
        client = MagicMock()
        mock_client.return_value = client
        repository = PatientReportRepository(patient.id)

        report = repository.upload(self._file(), 'CBC', ReportTypeChoices.LAB_REPORT, doctor_user)

        kwargs = client.put_object.call_args.kwargs
        assert kwargs['bucket_name'] == 'patient-reports'
        assert kwargs['object_name'].startswith(f'{patient.id}/')
        assert kwargs['object_name'].endswith('.pdf')
        assert kwargs['length'] == 1024

        report.refresh_from_db()
        assert report.file_url == kwargs['object_name']
        assert report.file_size == 1024
        assert report.file_type == 'application/pdf'
        assert report.uploaded_by == doctor_user
        assert [r.id for r in repository.reports] == [report.id]

    def test_upload_requires_patient(self, db, doctor_user):
        with pytest.raises(ReportRepositoryError):
            PatientReportRepository(None).upload(self._file(), 'CBC', ReportTypeChoices.LAB_REPORT, doctor_user)

    def test_upload_rejects_oversized_file(self, patient, doctor_user, settings):
        settings.MAX_REPORT_UPLOAD_BYTES = 1024 * 1024

        with pytest.raises(ReportValidationError, match='File size must be less than 1MB'):
            PatientReportRepository(patient.id).upload(
                self._file(size=1024 * 1024 + 1), 'CBC', ReportTypeChoices.LAB_REPORT, doctor_user
            )

    @patch('apps.clinical.reports.upload_object', side_effect=StorageError('bucket missing'))
    def test_storage_failure_raises_upload_error_without_row(self, mock_upload, patient, doctor_user):
        with pytest.raises(ReportUploadError):
            PatientReportRepository(patient.id).upload(self._file(), 'CBC', ReportTypeChoices.LAB_REPORT, doctor_user)

        assert PatientReport.objects.count() == 0

    def test_object_key_format(self):
        key = generate_report_object_key('p-1', 'Scan.Final.JPG')

        prefix, name = key.split('/')
        stamp, rest = name.split('_')
        assert prefix == 'p-1'
        assert stamp.isdigit()
        assert rest.endswith('.JPG')
        assert len(rest.split('.')[0]) == 6


@pytest.mark.django_db
class TestSoftDelete:
    """Test PatientReportRepository.delete()"""

    def test_soft_delete_records_reason_and_actor(self, patient, report, doctor_user):
        repository = PatientReportRepository(patient.id)

        repository.delete(report.id, 'Wrong patient', 'doctor', doctor_user)

        report.refresh_from_db()
        assert report.is_deleted is True
        assert report.deleted_reason == 'Wrong patient'
        assert report.deleted_by == doctor_user
        assert report.deleted_by_role == 'doctor'
        assert report.deleted_at is not None
        assert repository.reports == []

    def test_locked_report_cannot_be_deleted(self, patient, make_report, doctor_user):
        report = make_report(patient, locked=True)

        with pytest.raises(ReportLockedError, match='locked'):
            PatientReportRepository(patient.id).delete(report.id, 'Cleanup', 'doctor', doctor_user)

        report.refresh_from_db()
        assert report.is_deleted is False

    def test_blank_reason_rejected(self, patient, report, doctor_user):
        with pytest.raises(ReportValidationError):
            PatientReportRepository(patient.id).delete(report.id, '   ', 'doctor', doctor_user)

    def test_anonymous_actor_rejected(self, patient, report):
        from django.contrib.auth.models import AnonymousUser

        with pytest.raises(ReportActorError):
            PatientReportRepository(patient.id).delete(report.id, 'Duplicate', 'doctor', AnonymousUser())

    def test_report_of_other_patient_not_found(self, patient, other_patient, make_report, doctor_user):
        foreign = make_report(other_patient)

        with pytest.raises(PatientReport.DoesNotExist):
            PatientReportRepository(patient.id).delete(foreign.id, 'Duplicate', 'doctor', doctor_user)


@pytest.mark.django_db
class TestReviewAndLock:
    """Test mark_reviewed() and lock()"""

    def test_empty_selection_issues_no_query(self, patient, doctor_user, django_assert_num_queries):
        repository = PatientReportRepository(patient.id)

        with django_assert_num_queries(0):
            assert repository.lock([]) == 0
            assert repository.mark_reviewed([], doctor_user) == 0

    def test_mark_reviewed_removes_from_worklist(self, patient, make_report, doctor_user):
        first = make_report(patient, report_name='First')
        second = make_report(patient, report_name='Second')
        repository = PatientReportRepository(patient.id)

        updated = repository.mark_reviewed([first.id], doctor_user)

        assert updated == 1
        first.refresh_from_db()
        assert first.reviewed_by == doctor_user
        assert first.reviewed_at is not None
        assert [r.id for r in repository.reports] == [second.id]

    def test_lock_without_consultation_leaves_link_empty(self, patient, make_report):
        report = make_report(patient)
        repository = PatientReportRepository(patient.id)

        assert repository.lock([report.id]) == 1

        report.refresh_from_db()
        assert report.locked is True
        assert report.linked_consultation_id is None
        assert repository.reports == []

    def test_lock_links_own_consultation(self, patient, doctor, make_report):
        report = make_report(patient)
        consultation = _consultation(patient, doctor)

        assert PatientReportRepository(patient.id).lock([report.id], consultation.id) == 1

        report.refresh_from_db()
        assert report.linked_consultation_id == consultation.id

    def test_lock_rejects_unknown_consultation(self, patient, make_report):
        report = make_report(patient)

        with pytest.raises(ReportValidationError, match='Consultation not found'):
            PatientReportRepository(patient.id).lock([report.id], uuid.uuid4())

        report.refresh_from_db()
        assert report.locked is False

    def test_lock_rejects_other_patients_consultation(self, patient, other_patient, doctor, make_report):
        report = make_report(patient)
        foreign = _consultation(other_patient, doctor)

        with pytest.raises(ReportValidationError):
            PatientReportRepository(patient.id).lock([report.id], foreign.id)

        report.refresh_from_db()
        assert report.locked is False
        assert report.linked_consultation_id is None

    def test_lock_is_scoped_to_patient(self, patient, other_patient, make_report):
        foreign = make_report(other_patient)

        assert PatientReportRepository(patient.id).lock([foreign.id]) == 0

        foreign.refresh_from_db()
        assert foreign.locked is False
