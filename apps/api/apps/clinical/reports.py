"""
Patient report repository.

Fetches the doctor's active report worklist for one patient and performs the
report mutations (upload, soft delete, mark reviewed, lock). Every successful
mutation refetches the whole list; the list is small (tens of items).
"""
import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from apps.clinical.models import Consultation, PatientReport, ReportTypeChoices
from apps.clinical.utils_storage import (
    StorageError,
    generate_report_object_key,
    resolve_signed_url,
    upload_object,
)
from apps.core.observability import metrics
from apps.core.observability.events import (
    log_report_delete_blocked,
    log_report_soft_deleted,
    log_report_uploaded,
    log_reports_locked,
    log_reports_marked_reviewed,
)

logger = logging.getLogger(__name__)


class ReportRepositoryError(Exception):
    """Base error for report repository operations."""
    pass


class ReportUploadError(ReportRepositoryError):
    """The binary could not be written to storage."""
    pass


class ReportActorError(ReportRepositoryError):
    """No authenticated actor for a mutation that records one."""
    pass


class ReportLockedError(ReportRepositoryError):
    """The report is locked by a consultation and cannot be deleted."""
    pass


class ReportValidationError(ReportRepositoryError):
    """Invalid input, detected before any storage or database call."""
    pass


def is_in_active_worklist(report: PatientReport, now=None) -> bool:
    """
    Whether a report belongs in the doctor's active worklist.

    Deleted, locked and reviewed reports are excluded. Report types listed in
    REPORT_RETENTION_DAYS also age out of the list after that many days.
    """
    if report.is_deleted or report.locked or report.reviewed_at is not None:
        return False

    retention_days = settings.REPORT_RETENTION_DAYS.get(report.report_type)
    if retention_days is None:
        return True

    now = now or timezone.now()
    return now - report.upload_date <= timedelta(days=retention_days)


class PatientReportRepository:
    """
    Report list of one patient plus its mutations.

    Attributes:
        patient_id: Subject patient (None yields an empty list)
        reports: Last fetched active worklist; each item carries a
            ``signed_file_url`` (ResolvedUrl or UnresolvedUrl)
        error: Message of the last failed fetch, else None
    """

    def __init__(self, patient_id=None):
        self.patient_id = patient_id
        self.reports: List[PatientReport] = []
        self.error: Optional[str] = None

    @property
    def bucket(self) -> str:
        return settings.MINIO_REPORTS_BUCKET

    def _require_patient(self):
        if not self.patient_id:
            raise ReportRepositoryError('Patient id is required')

    def fetch(self) -> List[PatientReport]:
        """
        Load non-deleted, unlocked reports (newest first), sign their file
        URLs and keep only those in the active worklist.

        Raises:
            ReportRepositoryError: If the base query fails
        """
        if not self.patient_id:
            self.reports = []
            return self.reports

        self.error = None
        try:
            rows = list(
                PatientReport.objects.filter(
                    patient_id=self.patient_id,
                    is_deleted=False,
                    locked=False,
                ).order_by('-upload_date')
            )
        except DatabaseError as e:
            logger.error(
                'Failed to fetch patient reports',
                extra={'event': 'report_fetch_failed', 'patient_id': str(self.patient_id), 'error': str(e)}
            )
            self.reports = []
            self.error = str(e) or 'Failed to fetch patient reports'
            raise ReportRepositoryError(self.error) from e

        now = timezone.now()
        active = []
        for report in rows:
            if not is_in_active_worklist(report, now=now):
                continue
            report.signed_file_url = resolve_signed_url(self.bucket, report.file_url)
            active.append(report)

        self.reports = active
        return self.reports

    def upload(self, file, report_name: str, report_type: str, uploader) -> PatientReport:
        """
        Store the binary under <patient_id>/<epoch_ms>_<random>.<ext> and
        insert the report row pointing at it.

        A storage failure raises ReportUploadError. An insert failure after a
        successful write raises ReportRepositoryError; the stored object is
        left in place.
        """
        self._require_patient()

        report_name = (report_name or '').strip()
        if not report_name:
            raise ReportValidationError('Report name is required')
        if report_type not in ReportTypeChoices.values:
            raise ReportValidationError(f'Invalid report type: {report_type}')
        if file.size > settings.MAX_REPORT_UPLOAD_BYTES:
            max_mb = settings.MAX_REPORT_UPLOAD_BYTES // (1024 * 1024)
            raise ReportValidationError(f'File size must be less than {max_mb}MB')

        object_key = generate_report_object_key(self.patient_id, file.name)
        try:
            stored_path = upload_object(
                self.bucket,
                object_key,
                file,
                length=file.size,
                content_type=file.content_type,
            )
        except StorageError as e:
            metrics.report_uploads_total.labels(report_type=report_type, result='storage_error').inc()
            logger.error(
                'Report upload to storage failed',
                extra={'event': 'report_upload_failed', 'patient_id': str(self.patient_id), 'error': str(e)}
            )
            raise ReportUploadError(str(e)) from e

        try:
            report = PatientReport.objects.create(
                patient_id=self.patient_id,
                report_name=report_name,
                report_type=report_type,
                file_url=stored_path,
                file_size=file.size,
                file_type=file.content_type,
                uploaded_by=uploader,
                upload_date=timezone.now(),
            )
        except DatabaseError as e:
            metrics.report_uploads_total.labels(report_type=report_type, result='insert_error').inc()
            logger.error(
                'Report row insert failed after storage write',
                extra={
                    'event': 'report_insert_failed',
                    'patient_id': str(self.patient_id),
                    'object_key': stored_path,
                    'error': str(e),
                }
            )
            raise ReportRepositoryError(str(e) or 'Failed to save report') from e

        metrics.report_uploads_total.labels(report_type=report_type, result='success').inc()
        log_report_uploaded(report)

        self.fetch()
        return report

    def delete(self, report_id, reason: str, deleted_by_role: str, actor) -> None:
        """
        Soft delete a report with a mandatory reason.

        Raises:
            ReportActorError: No authenticated actor
            ReportValidationError: Blank reason
            PatientReport.DoesNotExist: Unknown report for this patient
            ReportLockedError: Report is locked
        """
        if actor is None or not actor.is_authenticated:
            raise ReportActorError('User not authenticated')

        reason = (reason or '').strip()
        if not reason:
            raise ReportValidationError('A reason is required to delete a report')

        report = PatientReport.objects.get(id=report_id, patient_id=self.patient_id, is_deleted=False)

        if report.locked:
            metrics.report_deletes_total.labels(result='locked').inc()
            log_report_delete_blocked(report.id, actor.id, reason='locked')
            raise ReportLockedError('This report is locked and cannot be deleted')

        report.is_deleted = True
        report.deleted_reason = reason
        report.deleted_by = actor
        report.deleted_by_role = deleted_by_role
        report.deleted_at = timezone.now()
        report.save(update_fields=[
            'is_deleted', 'deleted_reason', 'deleted_by', 'deleted_by_role', 'deleted_at', 'updated_at',
        ])

        metrics.report_deletes_total.labels(result='success').inc()
        log_report_soft_deleted(report.id, actor.id, deleted_by_role=deleted_by_role)

        self.fetch()

    def mark_reviewed(self, report_ids: Iterable, reviewer) -> int:
        """Set reviewed_by/reviewed_at on the given reports. Empty input is a no-op."""
        report_ids = list(report_ids)
        if not report_ids:
            return 0

        updated = PatientReport.objects.filter(
            id__in=report_ids,
            patient_id=self.patient_id,
        ).update(
            reviewed_by=reviewer,
            reviewed_at=timezone.now(),
            updated_at=timezone.now(),
        )

        log_reports_marked_reviewed(report_ids, reviewer.id)

        self.fetch()
        return updated

    def lock(self, report_ids: Iterable, consultation_id=None) -> int:
        """
        Lock the given reports, linking them to a consultation when one is given.
        Empty input is a no-op.

        Raises:
            ReportValidationError: consultation_id is not one of this patient's consultations
        """
        report_ids = list(report_ids)
        if not report_ids:
            return 0

        changes = {'locked': True, 'updated_at': timezone.now()}
        if consultation_id:
            if not Consultation.objects.filter(id=consultation_id, patient_id=self.patient_id).exists():
                raise ReportValidationError('Consultation not found for this patient')
            changes['linked_consultation_id'] = consultation_id

        updated = PatientReport.objects.filter(
            id__in=report_ids,
            patient_id=self.patient_id,
        ).update(**changes)

        metrics.reports_locked_total.inc(updated)
        log_reports_locked(
            report_ids,
            consultation_id=str(consultation_id) if consultation_id else None,
        )

        self.fetch()
        return updated
