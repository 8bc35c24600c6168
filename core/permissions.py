"""
Shared DRF permissions.
"""

from rest_framework import permissions


class IsAdminRole(permissions.BasePermission):
    """Authenticated users with the ADMIN role (or superusers)."""

    message = 'Admin access required.'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return request.user.is_admin_role
