"""
Authz permissions shared by the portal endpoints.
"""
from rest_framework import permissions
from apps.authz.models import RoleChoices


def get_user_roles(user):
    """Role names of an authenticated user (empty set otherwise)."""
    if not user or not user.is_authenticated:
        return set()
    return set(user.user_roles.values_list('role__name', flat=True))


class IsAdmin(permissions.BasePermission):
    """
    Permission class that only allows Admin role users.
    """

    def has_permission(self, request, view):
        return RoleChoices.ADMIN in get_user_roles(request.user)


class IsClinicalStaff(permissions.BasePermission):
    """
    Permission for doctor-side clinical endpoints.

    BUSINESS RULE: Only Admin and Doctor can see diagnoses, prescriptions,
    AI summaries and the report worklist of another person.

    - Admin: Full access
    - Doctor: Full access
    - Patient: NO ACCESS
    """

    def has_permission(self, request, view):
        user_roles = get_user_roles(request.user)
        allowed_roles = {RoleChoices.ADMIN, RoleChoices.DOCTOR}
        return bool(user_roles & allowed_roles)
