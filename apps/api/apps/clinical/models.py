"""
Clinical models: patient, vitals, report, consultation, prescription, appointment.
"""
import uuid
from django.db import models
from django.conf import settings


# ============================================================================
# Enums
# ============================================================================

class GenderChoices(models.TextChoices):
    """Patient gender"""
    MALE = 'Male', 'Male'
    FEMALE = 'Female', 'Female'
    OTHER = 'Other', 'Other'
    UNDISCLOSED = 'Prefer not to say', 'Prefer not to say'


class ReportTypeChoices(models.TextChoices):
    """Patient report types"""
    LAB_REPORT = 'lab_report', 'Lab Report'
    IMAGING = 'imaging', 'Imaging'
    PRESCRIPTION = 'prescription', 'Prescription'
    MEDICAL_CERTIFICATE = 'medical_certificate', 'Medical Certificate'
    REFERRAL = 'referral', 'Referral'
    GENERAL = 'general', 'General'


class ConsultationStatusChoices(models.TextChoices):
    """Consultation status"""
    ACTIVE = 'active', 'Active'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class ConsultationTypeChoices(models.TextChoices):
    """Consultation type"""
    IN_PERSON = 'in_person', 'In Person'
    VIDEO = 'video', 'Video'
    AUDIO = 'audio', 'Audio'
    EMERGENCY = 'emergency', 'Emergency'


class PrescriptionStatusChoices(models.TextChoices):
    """Prescription status"""
    ACTIVE = 'active', 'Active'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'
    EXPIRED = 'expired', 'Expired'


class RouteChoices(models.TextChoices):
    """Medication administration route"""
    ORAL = 'oral', 'Oral'
    TOPICAL = 'topical', 'Topical'
    INJECTION = 'injection', 'Injection'
    INHALATION = 'inhalation', 'Inhalation'
    SUBLINGUAL = 'sublingual', 'Sublingual'
    OTHER = 'other', 'Other'


class AppointmentStatusChoices(models.TextChoices):
    """Appointment status"""
    BOOKED = 'booked', 'Booked'
    CONFIRMED = 'confirmed', 'Confirmed'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'
    NO_SHOW = 'no_show', 'No Show'


# ============================================================================
# Models
# ============================================================================

class Patient(models.Model):
    """
    Patient demographic record.

    - id: UUID PK
    - user_id: FK -> auth_user nullable (patient-facing login)
    - full_name, email, phone_number
    - date_of_birth, gender nullable
    - address, city, state nullable
    - emergency contact nullable
    - medical_history, allergies, current_medications nullable
    - insurance_provider, insurance_number, blood_type nullable
    - profile_image_url: storage path in patient-profile-images, nullable
    - is_active bool default true
    - created_at, updated_at
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='patient_profile'
    )

    # Identity / contact
    full_name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, null=True)
    phone_number = models.CharField(max_length=50, blank=True, null=True)
    date_of_birth = models.DateField(blank=True, null=True)
    gender = models.CharField(
        max_length=20,
        choices=GenderChoices.choices,
        blank=True,
        null=True
    )
    address = models.TextField(blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    state = models.CharField(max_length=100, blank=True, null=True)
    emergency_contact_name = models.CharField(max_length=255, blank=True, null=True)
    emergency_contact_phone = models.CharField(max_length=50, blank=True, null=True)

    # Medical background
    medical_history = models.TextField(blank=True, null=True)
    allergies = models.TextField(blank=True, null=True)
    current_medications = models.TextField(blank=True, null=True)
    blood_type = models.CharField(max_length=5, blank=True, null=True)

    # Insurance
    insurance_provider = models.CharField(max_length=255, blank=True, null=True)
    insurance_number = models.CharField(max_length=100, blank=True, null=True)

    profile_image_url = models.CharField(
        max_length=500,
        blank=True,
        null=True,
        help_text="Object key in the patient-profile-images bucket"
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients'
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'
        indexes = [
            models.Index(fields=['full_name'], name='idx_patient_full_name'),
            models.Index(fields=['email'], name='idx_patient_email'),
            models.Index(fields=['is_active'], name='idx_patient_active'),
        ]

    def __str__(self):
        return self.full_name


class PatientVitals(models.Model):
    """
    Vitals snapshot recorded for a patient. Read as "most recent by recorded_date".
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'Patient',
        on_delete=models.CASCADE,
        related_name='vitals'
    )
    blood_pressure = models.CharField(max_length=20, blank=True, null=True, help_text="e.g. 120/80")
    heart_rate = models.IntegerField(blank=True, null=True)
    temperature = models.DecimalField(max_digits=4, decimal_places=1, blank=True, null=True)
    weight = models.DecimalField(max_digits=5, decimal_places=2, blank=True, null=True)
    bmi = models.DecimalField(max_digits=4, decimal_places=1, blank=True, null=True)
    spo2 = models.IntegerField(blank=True, null=True)
    respiratory_rate = models.IntegerField(blank=True, null=True)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='recorded_vitals'
    )
    recorded_date = models.DateTimeField()
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patient_vitals'
        verbose_name = 'Patient Vitals'
        verbose_name_plural = 'Patient Vitals'
        indexes = [
            models.Index(fields=['patient', '-recorded_date'], name='idx_vitals_patient_recorded'),
        ]

    def __str__(self):
        return f"Vitals for {self.patient} at {self.recorded_date}"


class PatientReport(models.Model):
    """
    Uploaded patient report (lab result, imaging, certificate...).

    Lifecycle:
    - uploaded -> (reviewed) -> (locked by a consultation) | soft-deleted
    - Soft delete keeps the row and records reason, actor, actor role and time
    - A locked report cannot be soft-deleted

    file_url holds the object key in the patient-reports bucket; it is turned
    into a short-lived signed URL at read time.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'Patient',
        on_delete=models.CASCADE,
        related_name='reports'
    )
    report_name = models.CharField(max_length=255)
    report_type = models.CharField(
        max_length=30,
        choices=ReportTypeChoices.choices,
        default=ReportTypeChoices.GENERAL
    )
    file_url = models.CharField(max_length=500, help_text="Object key in the patient-reports bucket")
    file_size = models.BigIntegerField(blank=True, null=True, help_text="File size in bytes")
    file_type = models.CharField(max_length=100, blank=True, null=True, help_text="MIME type")
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='uploaded_reports'
    )
    upload_date = models.DateTimeField()
    description = models.TextField(blank=True, null=True)

    # Soft delete
    is_deleted = models.BooleanField(default=False)
    deleted_reason = models.TextField(blank=True, null=True)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='deleted_reports'
    )
    deleted_by_role = models.CharField(max_length=20, blank=True, null=True)
    deleted_at = models.DateTimeField(blank=True, null=True)

    # Review
    reviewed_at = models.DateTimeField(blank=True, null=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='reviewed_reports'
    )

    # Lock
    locked = models.BooleanField(default=False)
    linked_consultation = models.ForeignKey(
        'Consultation',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='linked_reports'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patient_reports'
        verbose_name = 'Patient Report'
        verbose_name_plural = 'Patient Reports'
        ordering = ['-upload_date']
        indexes = [
            models.Index(fields=['patient', '-upload_date'], name='idx_report_patient_uploaded'),
            models.Index(fields=['is_deleted', 'locked'], name='idx_report_deleted_locked'),
            models.Index(fields=['report_type'], name='idx_report_type'),
        ]

    def __str__(self):
        return f"{self.report_name} ({self.get_report_type_display()})"


class Consultation(models.Model):
    """
    Consultation written by a doctor on prescription save (1:1 with Prescription).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'Patient',
        on_delete=models.CASCADE,
        related_name='consultations'
    )
    doctor = models.ForeignKey(
        'authz.Doctor',
        on_delete=models.PROTECT,
        related_name='consultations'
    )
    appointment = models.ForeignKey(
        'Appointment',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='consultations'
    )
    chief_complaint = models.TextField()
    diagnosis = models.TextField()
    clinical_notes = models.TextField(blank=True, null=True)
    consultation_date = models.DateTimeField()
    follow_up_date = models.DateField(blank=True, null=True)
    additional_instructions = models.TextField(blank=True, null=True)
    status = models.CharField(
        max_length=20,
        choices=ConsultationStatusChoices.choices,
        default=ConsultationStatusChoices.ACTIVE
    )
    consultation_type = models.CharField(
        max_length=20,
        choices=ConsultationTypeChoices.choices,
        default=ConsultationTypeChoices.IN_PERSON
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'consultations'
        verbose_name = 'Consultation'
        verbose_name_plural = 'Consultations'
        ordering = ['-consultation_date']
        indexes = [
            models.Index(fields=['patient', '-consultation_date'], name='idx_consult_patient_date'),
            models.Index(fields=['doctor'], name='idx_consult_doctor'),
        ]

    def __str__(self):
        return f"Consultation {self.patient} - {self.consultation_date:%Y-%m-%d}"


class Prescription(models.Model):
    """
    Prescription attached to a consultation.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    consultation = models.OneToOneField(
        'Consultation',
        on_delete=models.CASCADE,
        related_name='prescription'
    )
    patient = models.ForeignKey(
        'Patient',
        on_delete=models.CASCADE,
        related_name='prescriptions'
    )
    doctor = models.ForeignKey(
        'authz.Doctor',
        on_delete=models.PROTECT,
        related_name='prescriptions'
    )
    prescription_date = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=PrescriptionStatusChoices.choices,
        default=PrescriptionStatusChoices.ACTIVE
    )
    valid_until = models.DateField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'prescriptions'
        verbose_name = 'Prescription'
        verbose_name_plural = 'Prescriptions'
        indexes = [
            models.Index(fields=['patient', 'status'], name='idx_rx_patient_status'),
        ]

    def __str__(self):
        return f"Prescription {self.id} ({self.status})"


class PrescriptionItem(models.Model):
    """
    One medication line of a prescription. item_order preserves form row order.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    prescription = models.ForeignKey(
        'Prescription',
        on_delete=models.CASCADE,
        related_name='items'
    )
    medicine_name = models.CharField(max_length=255)
    dosage = models.CharField(max_length=100)
    frequency = models.CharField(max_length=100)
    duration = models.CharField(max_length=100)
    instructions = models.TextField(blank=True, null=True)
    quantity = models.IntegerField(blank=True, null=True)
    route = models.CharField(
        max_length=20,
        choices=RouteChoices.choices,
        default=RouteChoices.ORAL
    )
    item_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'prescription_items'
        verbose_name = 'Prescription Item'
        verbose_name_plural = 'Prescription Items'
        ordering = ['prescription', 'item_order']

    def __str__(self):
        return f"{self.medicine_name} {self.dosage}"


class Appointment(models.Model):
    """
    Scheduled visit of a patient with a doctor.

    Follow-up appointments are created by the prescription save with a fixed
    10:00-10:30 slot on the follow-up date.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'Patient',
        on_delete=models.CASCADE,
        related_name='appointments'
    )
    doctor = models.ForeignKey(
        'authz.Doctor',
        on_delete=models.CASCADE,
        related_name='appointments'
    )
    schedule_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField(default=30)
    status = models.CharField(
        max_length=20,
        choices=AppointmentStatusChoices.choices,
        default=AppointmentStatusChoices.BOOKED
    )
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'appointments'
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        ordering = ['schedule_date', 'start_time']
        indexes = [
            models.Index(fields=['doctor', 'schedule_date'], name='idx_appt_doctor_date'),
            models.Index(fields=['patient'], name='idx_appt_patient'),
            models.Index(fields=['status'], name='idx_appt_status'),
        ]

    def __str__(self):
        return f"{self.patient} - {self.schedule_date} {self.start_time}"
