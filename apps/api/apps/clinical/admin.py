from django.contrib import admin
from .models import (
    Patient, PatientVitals, PatientReport, Consultation,
    Prescription, PrescriptionItem, Appointment
)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'email', 'phone_number', 'gender', 'is_active', 'created_at']
    list_filter = ['gender', 'is_active', 'blood_type']
    search_fields = ['full_name', 'email', 'phone_number']
    readonly_fields = ['id', 'created_at', 'updated_at']
    autocomplete_fields = ['user']

    fieldsets = (
        ('Basic Info', {
            'fields': ('id', 'user', 'full_name', 'date_of_birth', 'gender', 'blood_type')
        }),
        ('Contact', {
            'fields': ('email', 'phone_number', 'address', 'city', 'state')
        }),
        ('Emergency Contact', {
            'fields': ('emergency_contact_name', 'emergency_contact_phone')
        }),
        ('Medical Background', {
            'fields': ('medical_history', 'allergies', 'current_medications')
        }),
        ('Insurance', {
            'fields': ('insurance_provider', 'insurance_number')
        }),
        ('Profile', {
            'fields': ('profile_image_url', 'is_active', 'created_at', 'updated_at')
        }),
    )


@admin.register(PatientVitals)
class PatientVitalsAdmin(admin.ModelAdmin):
    list_display = ['patient', 'recorded_date', 'blood_pressure', 'heart_rate', 'spo2']
    search_fields = ['patient__full_name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    autocomplete_fields = ['patient', 'recorded_by']
    date_hierarchy = 'recorded_date'


@admin.register(PatientReport)
class PatientReportAdmin(admin.ModelAdmin):
    list_display = ['report_name', 'patient', 'report_type', 'upload_date', 'reviewed_at', 'locked', 'is_deleted']
    list_filter = ['report_type', 'locked', 'is_deleted']
    search_fields = ['report_name', 'patient__full_name']
    readonly_fields = ['id', 'created_at', 'updated_at', 'deleted_at']
    autocomplete_fields = ['patient', 'uploaded_by', 'deleted_by', 'reviewed_by', 'linked_consultation']
    date_hierarchy = 'upload_date'

    fieldsets = (
        ('Report', {
            'fields': ('id', 'patient', 'report_name', 'report_type', 'description')
        }),
        ('File', {
            'fields': ('file_url', 'file_size', 'file_type', 'uploaded_by', 'upload_date')
        }),
        ('Review & Lock', {
            'fields': ('reviewed_at', 'reviewed_by', 'locked', 'linked_consultation')
        }),
        ('Soft Delete', {
            'fields': ('is_deleted', 'deleted_reason', 'deleted_by', 'deleted_by_role', 'deleted_at')
        }),
        ('Audit', {
            'fields': ('created_at', 'updated_at')
        }),
    )

    def get_queryset(self, request):
        """Show all reports including soft-deleted ones."""
        return super().get_queryset(request)


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ['patient', 'doctor', 'consultation_date', 'status', 'consultation_type', 'follow_up_date']
    list_filter = ['status', 'consultation_type']
    search_fields = ['patient__full_name', 'doctor__display_name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    autocomplete_fields = ['patient', 'doctor', 'appointment']
    date_hierarchy = 'consultation_date'


class PrescriptionItemInline(admin.TabularInline):
    model = PrescriptionItem
    extra = 0
    fields = ['item_order', 'medicine_name', 'dosage', 'frequency', 'duration', 'route', 'instructions']


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ['patient', 'doctor', 'prescription_date', 'status']
    list_filter = ['status']
    search_fields = ['patient__full_name', 'doctor__display_name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    autocomplete_fields = ['consultation', 'patient', 'doctor']
    inlines = [PrescriptionItemInline]


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['schedule_date', 'start_time', 'patient', 'doctor', 'status']
    list_filter = ['status']
    search_fields = ['patient__full_name', 'doctor__display_name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    autocomplete_fields = ['patient', 'doctor']
    date_hierarchy = 'schedule_date'
