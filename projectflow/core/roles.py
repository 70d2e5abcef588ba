"""
Role definitions for ProjectFlow.

Defines the 3 roles used across the workflow core:
- Student: forms groups, answers invitations, registers projects, ranks faculty
- Faculty: reviews incoming preference queues, claims or passes projects
- Admin: overrides allocations, disbands groups, runs semester promotion
"""

from enum import Enum


class Role(str, Enum):
    """
    Enum of available roles in ProjectFlow.

    Values match Django Group names exactly.
    """

    STUDENT = "Student"
    FACULTY = "Faculty"
    ADMIN = "Admin"

    @classmethod
    def choices(cls) -> list[tuple[str, str]]:
        """Return choices for Django form fields."""
        return [(role.value, role.value) for role in cls]

    @classmethod
    def values(cls) -> list[str]:
        """Return all role values."""
        return [role.value for role in cls]


def get_user_roles(user) -> list[str]:
    """
    Get the list of role names for a user.

    Args:
        user: Django User instance

    Returns:
        List of role names the user belongs to
    """
    if not user or not user.is_authenticated:
        return []

    return list(user.groups.values_list("name", flat=True))


def user_has_role(user, role: Role | str) -> bool:
    """
    Check if a user has a specific role.

    Args:
        user: Django User instance
        role: Role enum value or role name string

    Returns:
        True if user has the role
    """
    if not user or not user.is_authenticated:
        return False

    role_name = role.value if isinstance(role, Role) else role
    return user.groups.filter(name=role_name).exists()


def is_admin(user) -> bool:
    """
    Check if user has admin privileges.

    Returns True for superusers or users with Admin role.
    """
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return user_has_role(user, Role.ADMIN)


def is_faculty(user) -> bool:
    """Check if user is a faculty member with a faculty profile."""
    if not user or not user.is_authenticated:
        return False
    return user_has_role(user, Role.FACULTY) and hasattr(user, "faculty_profile")


def is_student(user) -> bool:
    """Check if user is a student with a student profile."""
    if not user or not user.is_authenticated:
        return False
    return user_has_role(user, Role.STUDENT) and hasattr(user, "student_profile")
