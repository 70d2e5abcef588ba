"""Project schemas for API requests and responses."""

from .projects import (
    AdminAllocateSchema,
    FacultyMinimalSchema,
    FacultyPreferenceSchema,
    PassSchema,
    PreferencesSubmitSchema,
    ProjectCreateSchema,
    ProjectSchema,
)

__all__ = [
    "FacultyMinimalSchema",
    "FacultyPreferenceSchema",
    "ProjectSchema",
    "ProjectCreateSchema",
    "PreferencesSubmitSchema",
    "PassSchema",
    "AdminAllocateSchema",
]
