from rest_framework.permissions import BasePermission

FUNDING_ADMIN_ROLES = ('pi', 'finance_admin', 'lab_manager')


def get_user_profile(user):
    """Return the PersonProfile linked to a user, or None"""
    if not user or not user.is_authenticated:
        return None
    return getattr(user, 'profile', None)


def is_funding_admin(user):
    """PIs, finance admins, lab managers and staff may administer funding"""
    if not user or not user.is_authenticated:
        return False
    if user.is_staff or user.is_superuser:
        return True
    profile = get_user_profile(user)
    return bool(profile and profile.user_role in FUNDING_ADMIN_ROLES)


class IsFundingAdmin(BasePermission):
    """Allows access only to users who administer lab funding"""
    message = "You don't have permission to perform this action"

    def has_permission(self, request, view):
        return is_funding_admin(request.user)
