"""
Domain events logging helpers.

Provides structured event logging for report, prescription and AI summary
operations.
"""
from typing import Dict, Optional, Iterable
from .logging import get_sanitized_logger, sanitize_dict

logger = get_sanitized_logger(__name__)


def log_domain_event(
    event_name: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    entity_ids: Optional[Dict[str, str]] = None,
    result: str = 'success',
    **extra_fields
):
    """
    Log a domain event with structured data.

    Args:
        event_name: Name of the event (e.g., 'report_uploaded', 'prescription_saved')
        entity_type: Type of entity (e.g., 'PatientReport', 'Prescription')
        entity_id: ID of primary entity
        entity_ids: Dictionary of related entity IDs
        result: Result of operation (success, failure, etc.)
        **extra_fields: Additional fields to log (will be sanitized)

    Example:
        log_domain_event(
            'reports_locked',
            entity_type='Patient',
            entity_id=str(patient.id),
            result='success',
            report_count=3
        )
    """
    event_data = {
        'event': event_name,
        'result': result,
    }

    if entity_type:
        event_data['entity_type'] = entity_type

    if entity_id:
        event_data['entity_id'] = entity_id

    if entity_ids:
        event_data.update(entity_ids)

    event_data.update(sanitize_dict(extra_fields))

    if result in ['failure', 'error']:
        logger.error(f'Domain event: {event_name}', extra=event_data)
    elif result in ['warning', 'blocked', 'partial']:
        logger.warning(f'Domain event: {event_name}', extra=event_data)
    else:
        logger.info(f'Domain event: {event_name}', extra=event_data)


def _ids(values: Iterable) -> list:
    return [str(v) for v in values]


def log_report_uploaded(report, **extra):
    """Log a new report row with its stored object."""
    log_domain_event(
        'report_uploaded',
        entity_type='PatientReport',
        entity_id=str(report.id),
        entity_ids={'patient_id': str(report.patient_id)},
        report_type=report.report_type,
        file_size=report.file_size,
        **extra
    )


def log_report_soft_deleted(report_id, user_id, **extra):
    """Log a report hidden from the active list by its uploader."""
    log_domain_event(
        'report_soft_deleted',
        entity_type='PatientReport',
        entity_id=str(report_id),
        entity_ids={'deleted_by': str(user_id)},
        **extra
    )


def log_report_delete_blocked(report_id, user_id, reason):
    """Log a refused soft delete (locked report or wrong actor)."""
    log_domain_event(
        'report_delete_blocked',
        entity_type='PatientReport',
        entity_id=str(report_id),
        entity_ids={'user_id': str(user_id)},
        result='blocked',
        reason=reason,
    )


def log_reports_marked_reviewed(report_ids, doctor_id):
    log_domain_event(
        'reports_marked_reviewed',
        entity_type='PatientReport',
        entity_ids={'doctor_id': str(doctor_id)},
        report_ids=_ids(report_ids),
        report_count=len(report_ids),
    )


def log_reports_locked(report_ids, result='success', **extra):
    log_domain_event(
        'reports_locked',
        entity_type='PatientReport',
        result=result,
        report_ids=_ids(report_ids),
        report_count=len(report_ids),
        **extra
    )


def log_prescription_saved(prescription, consultation, medication_count, appointment_created):
    """Log a saved consultation + prescription pair."""
    log_domain_event(
        'prescription_saved',
        entity_type='Prescription',
        entity_id=str(prescription.id),
        entity_ids={
            'consultation_id': str(consultation.id),
            'patient_id': str(consultation.patient_id),
            'doctor_id': str(consultation.doctor_id),
        },
        result='success' if appointment_created else 'partial',
        medication_count=medication_count,
        follow_up_appointment_created=appointment_created,
    )


def log_ai_summary_generated(patient_id, report_ids, duration_ms, result='success', **extra):
    log_domain_event(
        'ai_summary_generated',
        entity_type='Patient',
        entity_id=str(patient_id),
        result=result,
        report_ids=_ids(report_ids),
        report_count=len(report_ids),
        duration_ms=duration_ms,
        **extra
    )
