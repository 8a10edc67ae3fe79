"""
Authz serializers for Doctor and the current user profile.
"""
from rest_framework import serializers
from apps.authz.models import Doctor


class DoctorSerializer(serializers.ModelSerializer):
    """Read-only doctor listing (GET /api/v1/doctors/)."""
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Doctor
        fields = [
            'id',
            'user',
            'user_email',
            'display_name',
            'specialty',
            'registration_number',
            'is_active',
            'created_at',
        ]
        read_only_fields = fields


class UserProfileSerializer(serializers.Serializer):
    """Profile of the authenticated user with role names."""
    id = serializers.UUIDField()
    email = serializers.EmailField()
    is_active = serializers.BooleanField()
    roles = serializers.ListField(child=serializers.CharField())
    doctor_id = serializers.UUIDField(allow_null=True)
    patient_id = serializers.UUIDField(allow_null=True)
