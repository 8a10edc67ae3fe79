"""
Authz views for Doctor and the current user.
"""
from rest_framework import viewsets, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from apps.authz.models import Doctor
from apps.authz.serializers import DoctorSerializer, UserProfileSerializer


class DoctorViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read-only doctor directory.

    Endpoints:
    - GET /api/v1/doctors/ - List active doctors
    - GET /api/v1/doctors/{id}/ - Doctor detail

    Query parameters:
    - ?include_inactive=true - Include inactive doctors (default: false)
    - ?q=search_term - Search by display_name
    """
    permission_classes = [IsAuthenticated]
    serializer_class = DoctorSerializer

    def get_queryset(self):
        queryset = Doctor.objects.select_related('user').all()

        include_inactive = self.request.query_params.get('include_inactive', 'false').lower() == 'true'
        if not include_inactive:
            queryset = queryset.filter(is_active=True)

        q = self.request.query_params.get('q')
        if q:
            queryset = queryset.filter(display_name__icontains=q)

        return queryset.order_by('display_name')


class CurrentUserView(APIView):
    """
    GET /api/v1/auth/me/ - Profile of the authenticated user.

    The frontend calls this after login to learn its roles and, for doctors
    and patients, the id of the linked profile row.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = request.user
        doctor = getattr(user, 'doctor', None)
        patient = getattr(user, 'patient_profile', None)

        profile_data = {
            'id': user.id,
            'email': user.email,
            'is_active': user.is_active,
            'roles': sorted(user.role_names),
            'doctor_id': doctor.id if doctor else None,
            'patient_id': patient.id if patient else None,
        }

        serializer = UserProfileSerializer(profile_data)
        return Response(serializer.data, status=status.HTTP_200_OK)
