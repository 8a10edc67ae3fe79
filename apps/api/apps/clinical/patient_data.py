"""
Read-only patient details and vitals repositories.

Both follow the same shape: ``data`` / ``error`` / ``is_loading`` plus
``refetch()``; changing the subject with ``set_subject()`` refetches.
Errors are captured, not raised.
"""
import logging

from django.conf import settings
from django.db import DatabaseError

from apps.clinical.models import Patient, PatientVitals
from apps.clinical.utils_storage import resolve_signed_url

logger = logging.getLogger(__name__)


class _SubjectRepository:
    """Loading/error/data triple bound to one patient id."""

    default_error = 'Failed to fetch data'

    def __init__(self, patient_id=None, autoload=True):
        self.patient_id = patient_id
        self.data = None
        self.error = None
        self.is_loading = False
        if autoload:
            self.refetch()

    def set_subject(self, patient_id):
        """Switch to another patient; refetches when the id changes."""
        if patient_id == self.patient_id:
            return self.data
        self.patient_id = patient_id
        return self.refetch()

    def refetch(self):
        if not self.patient_id:
            self.data = None
            return self.data

        self.is_loading = True
        self.error = None
        try:
            self.data = self._load()
        except (DatabaseError, ValueError) as e:
            logger.error(
                'Failed to load patient data',
                extra={
                    'event': 'patient_data_fetch_failed',
                    'repository': self.__class__.__name__,
                    'patient_id': str(self.patient_id),
                    'error': str(e),
                }
            )
            self.error = str(e) or self.default_error
            self.data = None
        finally:
            self.is_loading = False
        return self.data

    def _load(self):
        raise NotImplementedError


class PatientDetailsRepository(_SubjectRepository):
    """
    Patient row with its profile image resolved to a signed URL.

    ``data`` is the Patient instance (or None) with ``signed_profile_image_url``
    set to a ResolvedUrl / UnresolvedUrl, or None when there is no image.
    """

    default_error = 'Failed to fetch patient details'
    bucket_prefix = 'patient-profile-images/'

    def _load(self):
        patient = Patient.objects.filter(id=self.patient_id).first()
        if patient is None:
            return None

        path = patient.profile_image_url
        if path and not path.startswith('http') and path.startswith(self.bucket_prefix):
            path = path[len(self.bucket_prefix):]
        patient.signed_profile_image_url = resolve_signed_url(settings.MINIO_PROFILE_IMAGES_BUCKET, path)
        return patient


class PatientVitalsRepository(_SubjectRepository):
    """Most recent vitals row by recorded_date, or None."""

    default_error = 'Failed to fetch patient vitals'

    def _load(self):
        return (
            PatientVitals.objects.filter(patient_id=self.patient_id)
            .order_by('-recorded_date')
            .first()
        )
