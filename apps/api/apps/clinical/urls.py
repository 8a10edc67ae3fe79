"""
Clinical URLs - Patient snapshot, reports, prescriptions, AI summary.
"""
from django.urls import path

from .views import (
    AISummaryView,
    PatientReportViewSet,
    PatientSnapshotView,
    PrescriptionSaveView,
    ReportChatView,
)

report_list = PatientReportViewSet.as_view({'get': 'list', 'post': 'create'})
report_delete = PatientReportViewSet.as_view({'post': 'soft_delete'})
report_mark_reviewed = PatientReportViewSet.as_view({'post': 'mark_reviewed'})
report_lock = PatientReportViewSet.as_view({'post': 'lock'})

urlpatterns = [
    path('patients/<uuid:patient_id>/snapshot/', PatientSnapshotView.as_view(), name='patient-snapshot'),

    # Report worklist
    path('patients/<uuid:patient_id>/reports/', report_list, name='patient-reports'),
    path('patients/<uuid:patient_id>/reports/mark-reviewed/', report_mark_reviewed, name='patient-reports-mark-reviewed'),
    path('patients/<uuid:patient_id>/reports/lock/', report_lock, name='patient-reports-lock'),
    path('reports/<uuid:pk>/delete/', report_delete, name='report-delete'),

    # Diagnosis & prescription
    path('patients/<uuid:patient_id>/prescriptions/', PrescriptionSaveView.as_view(), name='patient-prescriptions'),

    # AI summary
    path('patients/<uuid:patient_id>/ai-summary/', AISummaryView.as_view(), name='patient-ai-summary'),
    path('patients/<uuid:patient_id>/ai-summary/chat/', ReportChatView.as_view(), name='patient-report-chat'),
]
