"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- Users and authenticated API clients by role (admin, doctor, patient)
- Model instances (Patient, PatientReport, PatientVitals)
"""
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from apps.authz.models import Doctor, Role, RoleChoices, User, UserRole
from apps.clinical.models import Patient, PatientReport, PatientVitals, ReportTypeChoices


def _user_with_role(email, role_name, **extra):
    user = User.objects.create_user(
        email=email,
        password='testpass123',
        is_active=True,
        **extra
    )
    role, _ = Role.objects.get_or_create(name=role_name)
    UserRole.objects.create(user=user, role=role)
    return user


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ============================================================================
# Storage
# ============================================================================

@pytest.fixture(autouse=True)
def signed_urls():
    """
    MinIO signing never reaches the network in tests.
    Every object key signs to https://minio.test/<bucket>/<key>?signed=1
    """
    def _presign(bucket_name, object_key, expires=None):
        return f'https://minio.test/{bucket_name}/{object_key}?signed=1'

    with patch('apps.clinical.utils_storage.generate_presigned_get_url', side_effect=_presign) as mocked:
        yield mocked


# ============================================================================
# Users & API Clients
# ============================================================================

@pytest.fixture
def api_client():
    """Unauthenticated DRF API client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    return _user_with_role('admin@test.com', RoleChoices.ADMIN, is_staff=True, is_superuser=True)


@pytest.fixture
def doctor_user(db):
    user = _user_with_role('doctor@test.com', RoleChoices.DOCTOR)
    Doctor.objects.create(
        user=user,
        display_name='Dr. Test Doctor',
        specialty='General Medicine',
        is_active=True
    )
    return user


@pytest.fixture
def doctor(doctor_user):
    return doctor_user.doctor


@pytest.fixture
def patient_user(db):
    return _user_with_role('patient@test.com', RoleChoices.PATIENT)


@pytest.fixture
def admin_client(admin_user):
    """Authenticated API client with Admin role."""
    return _client_for(admin_user)


@pytest.fixture
def doctor_client(doctor_user):
    """Authenticated API client with Doctor role and an active Doctor profile."""
    return _client_for(doctor_user)


@pytest.fixture
def patient_client(patient_user):
    """Authenticated API client with Patient role, owner of the `patient` fixture."""
    return _client_for(patient_user)


# ============================================================================
# Clinical data
# ============================================================================

@pytest.fixture
def patient(db, patient_user):
    return Patient.objects.create(
        user=patient_user,
        full_name='Asha Verma',
        email='asha@example.com',
        phone_number='+91 98765 43210',
        allergies='Penicillin',
        profile_image_url='patient-profile-images/asha.jpg',
    )


@pytest.fixture
def other_patient(db):
    return Patient.objects.create(full_name='Ravi Kumar')


@pytest.fixture
def vitals(patient, doctor_user):
    return PatientVitals.objects.create(
        patient=patient,
        blood_pressure='120/80',
        heart_rate=72,
        recorded_by=doctor_user,
        recorded_date=timezone.now(),
    )


@pytest.fixture
def make_report(db):
    """
    Factory for PatientReport rows.

    Usage: make_report(patient, report_type='imaging', age_days=10, locked=True)
    """
    def _make(patient, report_name='Blood panel', report_type=ReportTypeChoices.LAB_REPORT, age_days=1, **extra):
        return PatientReport.objects.create(
            patient=patient,
            report_name=report_name,
            report_type=report_type,
            file_url=f'{patient.id}/{report_name.lower().replace(" ", "_")}.pdf',
            file_size=2048,
            file_type='application/pdf',
            upload_date=timezone.now() - timedelta(days=age_days),
            **extra
        )
    return _make


@pytest.fixture
def report(patient, make_report):
    return make_report(patient)
