"""
Documents URLs - Registration documents (lab reports, Aadhaar).
"""
from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import RegistrationDocumentViewSet

router = SimpleRouter()
router.register(r'', RegistrationDocumentViewSet, basename='registration-document')

urlpatterns = [
    path('', include(router.urls)),
]
