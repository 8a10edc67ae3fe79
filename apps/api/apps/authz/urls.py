"""
Authz URLs - Doctors and current user
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import DoctorViewSet, CurrentUserView

router = DefaultRouter()
router.register(r'doctors', DoctorViewSet, basename='doctor')

urlpatterns = [
    path('auth/me/', CurrentUserView.as_view(), name='current-user'),
    path('', include(router.urls)),
]
