"""
Prescription form state and save pipeline.

A PrescriptionForm holds what the doctor typed (complaint, diagnosis, notes,
medication rows) and saves it as Consultation -> Prescription -> items in one
transaction, followed by a best-effort follow-up appointment.
"""
import logging
import random
import string
import time
from dataclasses import dataclass, field, replace
from datetime import time as dt_time
from typing import List, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date

from apps.clinical.models import (
    Appointment,
    AppointmentStatusChoices,
    Consultation,
    ConsultationStatusChoices,
    ConsultationTypeChoices,
    Patient,
    Prescription,
    PrescriptionItem,
    PrescriptionStatusChoices,
    RouteChoices,
)
from apps.core.observability import metrics
from apps.core.observability.events import log_prescription_saved

logger = logging.getLogger(__name__)

FOLLOW_UP_START = dt_time(10, 0)
FOLLOW_UP_END = dt_time(10, 30)
FOLLOW_UP_DURATION_MINUTES = 30
FOLLOW_UP_NOTES = 'Follow-up appointment'

DEFAULT_ERROR = 'Failed to save prescription'


class PrescriptionValidationError(Exception):
    """Form content rejected before any database write."""
    pass


class PrescriptionSaveInProgress(Exception):
    """save() called while a save of the same form is running."""
    pass


def generate_temp_id() -> str:
    """Local row id: temp-<epoch_ms>-<random>."""
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"temp-{int(time.time() * 1000)}-{suffix}"


@dataclass
class MedicationRow:
    id: str = field(default_factory=generate_temp_id)
    medicine_name: str = ''
    dosage: str = ''
    frequency: str = ''
    duration: str = ''
    instructions: str = ''

    @property
    def is_valid(self) -> bool:
        """All four required columns are filled in."""
        return all(
            (value or '').strip()
            for value in (self.medicine_name, self.dosage, self.frequency, self.duration)
        )


@dataclass
class PrescriptionSaveResult:
    success: bool
    consultation_id: Optional[str] = None
    error: Optional[str] = None
    is_validation_error: bool = False
    follow_up_appointment_id: Optional[str] = None


class FormState:
    EDITING = 'editing'
    SAVING = 'saving'
    SAVED = 'saved'
    SAVE_FAILED = 'save_failed'


TEXT_FIELDS = (
    'chief_complaint',
    'diagnosis',
    'clinical_notes',
    'follow_up_date',
    'additional_instructions',
)

MEDICATION_FIELDS = ('medicine_name', 'dosage', 'frequency', 'duration', 'instructions')

INITIAL_MEDICATION_ROWS = 3


class PrescriptionForm:
    """
    In-memory prescription form.

    States: editing -> saving -> saved | save_failed. A validation failure
    returns to editing. Only one save may run at a time per form instance.
    """

    def __init__(self):
        self.is_saving = False
        self.state = FormState.EDITING
        self.reset()

    @classmethod
    def from_data(cls, data: dict) -> 'PrescriptionForm':
        """Build a form from a submitted payload (text fields + medications list)."""
        form = cls()
        for name in TEXT_FIELDS:
            value = data.get(name)
            if value is not None:
                form.update_field(name, str(value))

        medications = data.get('medications')
        if medications is not None:
            form.medications = []
            for row in medications:
                form.add_medication_row()
                row_id = form.medications[-1].id
                for name in MEDICATION_FIELDS:
                    if row.get(name) is not None:
                        form.update_medication(row_id, name, str(row[name]))
        return form

    def reset(self):
        self.chief_complaint = ''
        self.diagnosis = ''
        self.clinical_notes = ''
        self.follow_up_date = ''
        self.additional_instructions = ''
        self.medications: List[MedicationRow] = [MedicationRow() for _ in range(INITIAL_MEDICATION_ROWS)]
        self.state = FormState.EDITING

    def update_field(self, name: str, value: str):
        if name not in TEXT_FIELDS:
            raise ValueError(f'Unknown form field: {name}')
        setattr(self, name, value)

    def add_medication_row(self) -> MedicationRow:
        row = MedicationRow()
        self.medications.append(row)
        return row

    def remove_medication_row(self, row_id: str):
        self.medications = [row for row in self.medications if row.id != row_id]

    def update_medication(self, row_id: str, name: str, value: str):
        if name not in MEDICATION_FIELDS:
            raise ValueError(f'Unknown medication field: {name}')
        self.medications = [
            replace(row, **{name: value}) if row.id == row_id else row
            for row in self.medications
        ]

    def valid_medications(self) -> List[MedicationRow]:
        """Rows that will become prescription items; the rest are dropped."""
        return [row for row in self.medications if row.is_valid]

    def _validate(self):
        if not self.chief_complaint.strip():
            raise PrescriptionValidationError('Chief complaint is required')
        if not self.diagnosis.strip():
            raise PrescriptionValidationError('Diagnosis is required')

        valid = self.valid_medications()
        if not valid:
            raise PrescriptionValidationError('At least one valid medication is required')

        follow_up = None
        if self.follow_up_date:
            try:
                follow_up = parse_date(self.follow_up_date)
            except ValueError:
                follow_up = None
            if follow_up is None:
                raise PrescriptionValidationError('Invalid follow-up date')
        return valid, follow_up

    def save(self, patient_id, doctor_id, appointment_id=None) -> PrescriptionSaveResult:
        """
        Persist the form.

        1. Validate (no database access on failure)
        2-4. Consultation, Prescription and items in one transaction
        5. Follow-up appointment when a follow-up date is set (best effort)
        6. Touch the patient's updated_at

        Returns a PrescriptionSaveResult; failures carry one error message
        whatever step failed.

        Raises:
            PrescriptionSaveInProgress: A save of this form is already running
        """
        if self.is_saving:
            raise PrescriptionSaveInProgress('A save is already in progress')

        self.is_saving = True
        self.state = FormState.SAVING
        try:
            valid_rows, follow_up = self._validate()
            consultation, prescription = self._persist(patient_id, doctor_id, appointment_id, valid_rows, follow_up)
        except PrescriptionValidationError as e:
            # Nothing was written; the doctor keeps editing
            self.state = FormState.EDITING
            metrics.prescriptions_saved_total.labels(result='validation_error').inc()
            return PrescriptionSaveResult(success=False, error=str(e), is_validation_error=True)
        except Exception as e:
            self.state = FormState.SAVE_FAILED
            metrics.prescriptions_saved_total.labels(result='failure').inc()
            logger.exception(
                'Prescription save failed',
                extra={'event': 'prescription_save_failed', 'patient_id': str(patient_id), 'doctor_id': str(doctor_id)}
            )
            return PrescriptionSaveResult(success=False, error=str(e) or DEFAULT_ERROR)
        finally:
            self.is_saving = False

        appointment = None
        if follow_up is not None:
            appointment = self._create_follow_up(patient_id, doctor_id, follow_up)

        self._touch_patient(patient_id)

        self.state = FormState.SAVED
        metrics.prescriptions_saved_total.labels(result='success' if follow_up is None or appointment else 'partial').inc()
        log_prescription_saved(
            prescription,
            consultation,
            medication_count=len(valid_rows),
            appointment_created=follow_up is None or appointment is not None,
        )

        return PrescriptionSaveResult(
            success=True,
            consultation_id=str(consultation.id),
            follow_up_appointment_id=str(appointment.id) if appointment else None,
        )

    def _persist(self, patient_id, doctor_id, appointment_id, valid_rows, follow_up):
        now = timezone.now()
        with transaction.atomic():
            consultation = Consultation.objects.create(
                patient_id=patient_id,
                doctor_id=doctor_id,
                appointment_id=appointment_id,
                chief_complaint=self.chief_complaint,
                diagnosis=self.diagnosis,
                clinical_notes=self.clinical_notes or None,
                consultation_date=now,
                follow_up_date=follow_up,
                additional_instructions=self.additional_instructions or None,
                status=ConsultationStatusChoices.COMPLETED,
                consultation_type=ConsultationTypeChoices.IN_PERSON,
            )

            prescription = Prescription.objects.create(
                consultation=consultation,
                patient_id=patient_id,
                doctor_id=doctor_id,
                prescription_date=now,
                status=PrescriptionStatusChoices.ACTIVE,
            )

            PrescriptionItem.objects.bulk_create([
                PrescriptionItem(
                    prescription=prescription,
                    medicine_name=row.medicine_name,
                    dosage=row.dosage,
                    frequency=row.frequency,
                    duration=row.duration,
                    instructions=row.instructions or None,
                    route=RouteChoices.ORAL,
                    item_order=index,
                )
                for index, row in enumerate(valid_rows)
            ])

        return consultation, prescription

    def _create_follow_up(self, patient_id, doctor_id, follow_up):
        """Book the 10:00-10:30 follow-up slot. Failure is logged, never raised."""
        try:
            with transaction.atomic():
                return Appointment.objects.create(
                    patient_id=patient_id,
                    doctor_id=doctor_id,
                    schedule_date=follow_up,
                    start_time=FOLLOW_UP_START,
                    end_time=FOLLOW_UP_END,
                    duration_minutes=FOLLOW_UP_DURATION_MINUTES,
                    status=AppointmentStatusChoices.BOOKED,
                    notes=FOLLOW_UP_NOTES,
                )
        except DatabaseError as e:
            logger.warning(
                'Follow-up appointment could not be created',
                extra={
                    'event': 'follow_up_appointment_failed',
                    'patient_id': str(patient_id),
                    'doctor_id': str(doctor_id),
                    'error': str(e),
                }
            )
            return None

    def _touch_patient(self, patient_id):
        try:
            Patient.objects.filter(id=patient_id).update(updated_at=timezone.now())
        except DatabaseError as e:
            logger.warning(
                'Patient updated_at touch failed',
                extra={'event': 'patient_touch_failed', 'patient_id': str(patient_id), 'error': str(e)}
            )
