"""
Permission classes for API controllers.
"""

from typing import Any

from django.http import HttpRequest
from ninja_extra import permissions

from projectflow.core.roles import is_admin, is_faculty, is_student


class IsAuthenticated(permissions.BasePermission):
    """
    Permission class that requires authentication.

    Checks if the user is authenticated before allowing access.
    """

    message = "Authentication required."

    def has_permission(self, request: HttpRequest, controller: Any) -> bool:
        """Check if the user is authenticated."""
        return bool(request.user and request.user.is_authenticated)


class IsAdmin(permissions.BasePermission):
    """Requires a superuser or a user with the Admin role."""

    message = "Restricted to administrators."

    def has_permission(self, request: HttpRequest, controller: Any) -> bool:
        return is_admin(request.user)


class IsFaculty(permissions.BasePermission):
    """Requires a user with the Faculty role and a faculty profile."""

    message = "Restricted to faculty."

    def has_permission(self, request: HttpRequest, controller: Any) -> bool:
        return is_faculty(request.user)


class IsStudent(permissions.BasePermission):
    """Requires a user with the Student role and a student profile."""

    message = "Restricted to students."

    def has_permission(self, request: HttpRequest, controller: Any) -> bool:
        return is_student(request.user)
