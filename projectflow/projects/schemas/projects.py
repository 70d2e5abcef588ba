"""
Project and allocation schemas for API requests and responses.
"""

from datetime import datetime
from uuid import UUID

from ninja import Schema
from pydantic import field_validator


class FacultyMinimalSchema(Schema):
    """Minimal faculty information for display."""

    id: UUID
    full_name: str
    department: str

    @classmethod
    def from_faculty(cls, faculty) -> "FacultyMinimalSchema":
        return cls(id=faculty.id, full_name=faculty.full_name, department=faculty.department)


class FacultyPreferenceSchema(Schema):
    faculty: FacultyMinimalSchema
    priority: int
    passed: bool


class ProjectSchema(Schema):
    """Schema for project responses."""

    id: UUID
    title: str
    description: str
    group_id: UUID | None
    student_id: UUID | None
    faculty: FacultyMinimalSchema | None
    status: str
    semester: int
    academic_year: str
    allocated_by: str
    allocated_at: datetime | None
    preferences: list[FacultyPreferenceSchema]
    created: datetime


class ProjectCreateSchema(Schema):
    """Schema for registering a project."""

    title: str
    description: str = ""
    group_id: UUID | None = None
    semester: int | None = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("A project title is required.")
        return v.strip()


class PreferencesSubmitSchema(Schema):
    """Ordered faculty choices, first choice first."""

    faculty_ids: list[UUID]

    @field_validator("faculty_ids")
    @classmethod
    def not_empty(cls, v: list[UUID]) -> list[UUID]:
        if not v:
            raise ValueError("At least one faculty is required.")
        return v


class PassSchema(Schema):
    comments: str = ""


class AdminAllocateSchema(Schema):
    faculty_id: UUID
    comments: str = ""
