"""Permission classes shared by the back-office and agency portal APIs."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def _is_platform_admin(user) -> bool:
    if getattr(user, "is_superuser", False):
        return True
    if hasattr(user, "is_super_admin") and user.is_super_admin():
        return True
    return hasattr(user, "is_admin") and user.is_admin()


class IsSuperAdminOrAdmin(permissions.BasePermission):
    """
    Only super admins and admins.

    Used for user management, the activity log and other settings that
    operators must never touch.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        return _is_platform_admin(user)


class HasSection(permissions.BasePermission):
    """
    Back-office access gated by an operator section.

    Super admins and admins pass every check; operators must hold the
    section named by ``view.required_section``.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if _is_platform_admin(user):
            return True
        section = getattr(view, "required_section", None)
        if not section:
            return False
        return hasattr(user, "has_section") and user.has_section(section)


class CanManageUsers(permissions.BasePermission):
    """Admins manage users; operators with `users_readonly` may only read."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if _is_platform_admin(user):
            return True
        if request.method in permissions.SAFE_METHODS:
            return hasattr(user, "has_section") and user.has_section("users_readonly")
        return False


class IsAgencyUser(permissions.BasePermission):
    """
    Agency portal access: the user must have the agency role and an
    agency profile.
    """

    message = "Accesso riservato alle agenzie."

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if not (hasattr(user, "is_agency") and user.is_agency()):
            return False
        return hasattr(user, "agency")
