"""
Object-level permissions for opportunities.
"""

from rest_framework import permissions

from users.models import ADMIN_ROLES, UserRole


class IsHostOrAdmin(permissions.BasePermission):
    """Allows writes only to users who can host opportunities."""

    message = "Only hosts can manage opportunities."

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and (user.role == UserRole.HOST or user.role in ADMIN_ROLES)
        )


class IsOpportunityHostOrAdmin(permissions.BasePermission):
    """Allows access to the opportunity's host or a platform admin."""

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        return obj.host_id == request.user.id or request.user.is_admin_role
