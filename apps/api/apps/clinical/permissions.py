"""
Clinical permissions for API endpoints.

BUSINESS RULE: Patients only ever see their own reports and never see
consultations, prescriptions or AI summaries.
"""
from rest_framework import permissions
from apps.authz.models import RoleChoices
from apps.authz.permissions import IsClinicalStaff, get_user_roles

__all__ = ['IsClinicalStaff', 'ReportPermission', 'can_access_patient', 'actor_role']

STAFF_ROLES = {RoleChoices.ADMIN, RoleChoices.DOCTOR}


def can_access_patient(user, patient) -> bool:
    """
    Object-level check shared by report endpoints.

    - Admin, Doctor: any patient
    - Patient: only the patient row linked to their own user
    """
    user_roles = get_user_roles(user)
    if user_roles & STAFF_ROLES:
        return True
    if RoleChoices.PATIENT in user_roles:
        return patient.user_id is not None and patient.user_id == user.id
    return False


def actor_role(user) -> str:
    """Role recorded as deleted_by_role on a soft delete."""
    user_roles = get_user_roles(user)
    for role in (RoleChoices.DOCTOR, RoleChoices.ADMIN, RoleChoices.PATIENT):
        if role in user_roles:
            return role.value
    return ''


class ReportPermission(permissions.BasePermission):
    """
    Permission for report list/upload/delete endpoints.

    - Admin: Full access
    - Doctor: Full access
    - Patient: Own reports only (checked per patient with can_access_patient)
    """

    def has_permission(self, request, view):
        user_roles = get_user_roles(request.user)
        return bool(user_roles & (STAFF_ROLES | {RoleChoices.PATIENT}))
