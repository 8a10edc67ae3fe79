"""
Tests for the patient details and vitals repositories.
"""
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.utils import timezone

from apps.clinical.models import PatientVitals
from apps.clinical.patient_data import PatientDetailsRepository, PatientVitalsRepository
from apps.clinical.utils_storage import ResolvedUrl, UnresolvedUrl


@pytest.mark.django_db
class TestPatientDetails:

    def test_profile_image_prefix_stripped_before_signing(self, patient, signed_urls):
        repository = PatientDetailsRepository(patient.id)

        signed_urls.assert_called_once_with('patient-profile-images', 'asha.jpg')
        assert repository.data == patient
        assert repository.data.signed_profile_image_url == ResolvedUrl(
            url='https://minio.test/patient-profile-images/asha.jpg?signed=1'
        )

    def test_signing_failure_keeps_path(self, patient, signed_urls):
        signed_urls.side_effect = Exception('expired credentials')

        repository = PatientDetailsRepository(patient.id)

        signed = repository.data.signed_profile_image_url
        assert isinstance(signed, UnresolvedUrl)
        assert signed.url == 'asha.jpg'
        assert repository.error is None

    def test_no_image(self, other_patient):
        repository = PatientDetailsRepository(other_patient.id)

        assert repository.data.signed_profile_image_url is None

    def test_missing_subject_loads_nothing(self, db):
        repository = PatientDetailsRepository(None)

        assert repository.data is None
        assert repository.error is None

    def test_set_subject_refetches_only_on_change(self, patient, other_patient):
        repository = PatientDetailsRepository(patient.id)

        with patch.object(repository, 'refetch') as mock_refetch:
            repository.set_subject(patient.id)
            mock_refetch.assert_not_called()
            repository.set_subject(other_patient.id)
            mock_refetch.assert_called_once()

    def test_database_error_captured(self, patient):
        with patch('apps.clinical.patient_data.Patient.objects.filter', side_effect=DatabaseError('gone')):
            repository = PatientDetailsRepository(patient.id)

        assert repository.data is None
        assert repository.error == 'gone'
        assert repository.is_loading is False


@pytest.mark.django_db
class TestPatientVitals:

    def test_latest_by_recorded_date(self, patient):
        PatientVitals.objects.create(patient=patient, heart_rate=80, recorded_date=timezone.now() - timedelta(days=3))
        latest = PatientVitals.objects.create(patient=patient, heart_rate=70, recorded_date=timezone.now())

        assert PatientVitalsRepository(patient.id).data == latest

    def test_no_vitals(self, patient):
        repository = PatientVitalsRepository(patient.id)

        assert repository.data is None
        assert repository.error is None
