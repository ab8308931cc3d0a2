"""
API permissions based on the Principal attached by the auth middleware.
"""

from rest_framework.permissions import BasePermission


class IsAuthenticatedPrincipal(BasePermission):
    """Any caller with a valid API key."""

    message = "Authentication required"

    def has_permission(self, request, view):
        return getattr(request, "principal", None) is not None


class IsAdminPrincipal(BasePermission):
    """Callers holding the admin role."""

    message = "Admin role required"

    def has_permission(self, request, view):
        principal = getattr(request, "principal", None)
        return principal is not None and principal.is_admin
