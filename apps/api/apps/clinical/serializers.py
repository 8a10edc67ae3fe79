"""
Clinical serializers for patient snapshot, reports, prescriptions and AI summaries.
"""
from rest_framework import serializers

from apps.clinical.models import (
    Patient,
    PatientVitals,
    PatientReport,
    ReportTypeChoices,
)
from apps.documents.storage import format_file_size


def _signed(value):
    """(url, resolved) for a ResolvedUrl / UnresolvedUrl / None."""
    if value is None:
        return None, False
    return value.url, value.resolved


class PatientDetailSerializer(serializers.ModelSerializer):
    """
    Patient header data.

    profile_image_url is the signed URL when signing worked, otherwise the
    stored path with profile_image_url_resolved = false.
    """
    profile_image_url = serializers.SerializerMethodField()
    profile_image_url_resolved = serializers.SerializerMethodField()

    class Meta:
        model = Patient
        fields = [
            'id',
            'full_name',
            'email',
            'phone_number',
            'date_of_birth',
            'gender',
            'address',
            'city',
            'state',
            'emergency_contact_name',
            'emergency_contact_phone',
            'medical_history',
            'allergies',
            'current_medications',
            'insurance_provider',
            'insurance_number',
            'blood_type',
            'profile_image_url',
            'profile_image_url_resolved',
            'is_active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_profile_image_url(self, obj):
        return _signed(getattr(obj, 'signed_profile_image_url', None))[0]

    def get_profile_image_url_resolved(self, obj):
        return _signed(getattr(obj, 'signed_profile_image_url', None))[1]


class PatientVitalsSerializer(serializers.ModelSerializer):
    class Meta:
        model = PatientVitals
        fields = [
            'id',
            'blood_pressure',
            'heart_rate',
            'temperature',
            'weight',
            'bmi',
            'spo2',
            'respiratory_rate',
            'recorded_by',
            'recorded_date',
            'notes',
        ]
        read_only_fields = fields


class PatientReportSerializer(serializers.ModelSerializer):
    """
    Report as shown in the worklist.

    file_url is the signed URL; when signing failed it is the stored path and
    file_url_resolved is false so the client can disable the view action.
    """
    file_url = serializers.SerializerMethodField()
    file_url_resolved = serializers.SerializerMethodField()
    file_size_display = serializers.SerializerMethodField()

    class Meta:
        model = PatientReport
        fields = [
            'id',
            'patient_id',
            'report_name',
            'report_type',
            'file_url',
            'file_url_resolved',
            'file_size',
            'file_size_display',
            'file_type',
            'uploaded_by',
            'upload_date',
            'description',
            'reviewed_at',
            'locked',
            'linked_consultation_id',
            'created_at',
        ]
        read_only_fields = fields

    def _signed_url(self, obj):
        signed = getattr(obj, 'signed_file_url', None)
        if signed is None:
            return obj.file_url, False
        return _signed(signed)

    def get_file_url(self, obj):
        return self._signed_url(obj)[0]

    def get_file_url_resolved(self, obj):
        return self._signed_url(obj)[1]

    def get_file_size_display(self, obj):
        return format_file_size(obj.file_size or 0)


class ReportUploadSerializer(serializers.Serializer):
    """Multipart body of POST patients/{id}/reports/."""
    file = serializers.FileField()
    report_name = serializers.CharField(max_length=255)
    report_type = serializers.ChoiceField(choices=ReportTypeChoices.choices, default=ReportTypeChoices.GENERAL)


class ReportDeleteSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True, required=False, default='')


class ReportIdsSerializer(serializers.Serializer):
    report_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=True)


class LockReportsSerializer(ReportIdsSerializer):
    consultation_id = serializers.UUIDField(required=False, allow_null=True)


class MedicationRowSerializer(serializers.Serializer):
    medicine_name = serializers.CharField(allow_blank=True, required=False, default='')
    dosage = serializers.CharField(allow_blank=True, required=False, default='')
    frequency = serializers.CharField(allow_blank=True, required=False, default='')
    duration = serializers.CharField(allow_blank=True, required=False, default='')
    instructions = serializers.CharField(allow_blank=True, required=False, default='')


class PrescriptionSaveSerializer(serializers.Serializer):
    """
    Body of POST patients/{id}/prescriptions/.

    Content rules (required complaint, diagnosis, at least one complete
    medication row) are enforced by PrescriptionForm so the messages match
    the form's.
    """
    chief_complaint = serializers.CharField(allow_blank=True, required=False, default='')
    diagnosis = serializers.CharField(allow_blank=True, required=False, default='')
    clinical_notes = serializers.CharField(allow_blank=True, required=False, default='')
    follow_up_date = serializers.CharField(allow_blank=True, required=False, default='')
    additional_instructions = serializers.CharField(allow_blank=True, required=False, default='')
    medications = MedicationRowSerializer(many=True, required=False, default=list)
    appointment_id = serializers.UUIDField(required=False, allow_null=True)
    report_ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)


class AISummaryRequestSerializer(serializers.Serializer):
    report_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=True)


class ReportChatSerializer(serializers.Serializer):
    question = serializers.CharField(allow_blank=True)
    report_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
