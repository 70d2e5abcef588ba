"""
Group schemas for API requests and responses.
"""

from datetime import datetime
from uuid import UUID

from ninja import Schema
from pydantic import field_validator


class StudentMinimalSchema(Schema):
    """Minimal student information for display."""

    id: UUID
    full_name: str
    mis_number: str

    @classmethod
    def from_student(cls, student) -> "StudentMinimalSchema":
        """Create from Student model instance."""
        return cls(
            id=student.id,
            full_name=student.full_name,
            mis_number=student.mis_number,
        )


class GroupMemberSchema(Schema):
    """Active roster entry."""

    student: StudentMinimalSchema
    role: str
    joined_at: datetime


class GroupListSchema(Schema):
    """Schema for group list view."""

    id: UUID
    name: str
    leader: StudentMinimalSchema | None
    member_count: int
    min_members: int
    max_members: int
    status: str
    semester: int
    academic_year: str
    created: datetime


class GroupDetailSchema(GroupListSchema):
    """Detailed group schema with members."""

    members: list[GroupMemberSchema]
    allocated_faculty_id: UUID | None
    project_id: UUID | None
    finalized_at: datetime | None


class GroupCreateSchema(Schema):
    """Schema for creating a group."""

    name: str
    semester: int | None = None
    academic_year: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("A group name is required.")
        if len(v.strip()) < 3:
            raise ValueError("The group name must be at least 3 characters long.")
        return v.strip()


class InvitationSchema(Schema):
    """Schema for group invitation responses."""

    id: UUID
    group_id: UUID
    group_name: str
    invitee: StudentMinimalSchema
    invited_by: StudentMinimalSchema | None
    role: str
    status: str
    rejection_reason: str
    message: str
    created: datetime
    responded_at: datetime | None


class InvitationCreateSchema(Schema):
    """Schema for inviting one or more students."""

    student_ids: list[UUID]
    message: str = ""

    @field_validator("student_ids")
    @classmethod
    def at_least_one(cls, v: list[UUID]) -> list[UUID]:
        if not v:
            raise ValueError("At least one student must be invited.")
        return list(dict.fromkeys(v))


class InvitationResponseSchema(Schema):
    """Schema for responding to an invitation."""

    accept: bool


class TransferLeadershipSchema(Schema):
    """Schema for transferring group leadership."""

    new_leader_id: UUID
