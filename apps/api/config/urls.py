"""
URL configuration for the care portal API.
"""
from django.conf import settings
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)
from apps.core.observability.health import HealthzView, ReadyzView

urlpatterns = [
    # Health checks (no auth required)
    path('healthz', HealthzView.as_view(), name='healthz'),
    path('readyz', ReadyzView.as_view(), name='readyz'),

    # Admin
    path('admin/', admin.site.urls),

    # Private API (authentication required)
    path('api/v1/', include('apps.core.urls')),  # JWT token endpoints
    path('api/v1/', include('apps.authz.urls')),  # Current user, doctors
    path('api/v1/clinical/', include('apps.clinical.urls')),  # Snapshot, reports, prescriptions, AI summary
    path('api/v1/documents/', include('apps.documents.urls')),  # Registration documents

    # API Schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/schema/swagger-ui/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/schema/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]

# Debug toolbar
if settings.DEBUG:
    import debug_toolbar
    urlpatterns = [
        path('__debug__/', include(debug_toolbar.urls)),
    ] + urlpatterns
