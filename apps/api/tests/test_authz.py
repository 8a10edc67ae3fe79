"""
Tests for the current user and doctor directory endpoints.
"""
import pytest

from apps.authz.models import Doctor, RoleChoices


@pytest.mark.django_db
class TestCurrentUser:

    def test_doctor_profile(self, doctor_client, doctor):
        response = doctor_client.get('/api/v1/auth/me/')

        assert response.status_code == 200
        assert response.data['roles'] == [RoleChoices.DOCTOR]
        assert response.data['doctor_id'] == str(doctor.id)
        assert response.data['patient_id'] is None

    def test_patient_profile(self, patient_client, patient):
        response = patient_client.get('/api/v1/auth/me/')

        assert response.data['roles'] == [RoleChoices.PATIENT]
        assert response.data['patient_id'] == str(patient.id)
        assert response.data['doctor_id'] is None

    def test_anonymous_rejected(self, api_client):
        assert api_client.get('/api/v1/auth/me/').status_code == 401


@pytest.mark.django_db
class TestDoctorDirectory:

    def test_inactive_hidden_by_default(self, patient_client, doctor, admin_user):
        Doctor.objects.create(user=admin_user, display_name='Dr. Retired', is_active=False)

        response = patient_client.get('/api/v1/doctors/')

        assert [d['display_name'] for d in response.data['results']] == ['Dr. Test Doctor']

    def test_include_inactive_and_search(self, patient_client, doctor, admin_user):
        Doctor.objects.create(user=admin_user, display_name='Dr. Retired', is_active=False)

        response = patient_client.get('/api/v1/doctors/?include_inactive=true&q=retired')

        assert [d['display_name'] for d in response.data['results']] == ['Dr. Retired']
