"""
Track selection and internship application schemas.
"""

from datetime import datetime
from uuid import UUID

from ninja import Schema
from pydantic import field_validator

from projectflow.academics.models import ApplicationType, Track


class TrackChoiceSchema(Schema):
    semester: int
    track: str

    @field_validator("track")
    @classmethod
    def known_track(cls, v: str) -> str:
        if v not in Track.values:
            raise ValueError(f"Track must be one of: {', '.join(Track.values)}")
        return v


class TrackFinalizeSchema(TrackChoiceSchema):
    student_id: UUID


class SelectionSchema(Schema):
    student_id: UUID
    semester: int
    academic_year: str
    chosen_track: str
    finalized_track: str
    internship_outcome: str
    finalized_at: datetime | None = None
    auto_initialized: bool


class ApplicationCreateSchema(Schema):
    semester: int
    type: str
    company: str = ""

    @field_validator("type")
    @classmethod
    def known_type(cls, v: str) -> str:
        if v not in ApplicationType.values:
            raise ValueError(f"Type must be one of: {', '.join(ApplicationType.values)}")
        return v


class ApplicationReviewSchema(Schema):
    status: str
    remarks: str = ""


class ApplicationSchema(Schema):
    id: UUID
    student_id: UUID
    semester: int
    type: str
    status: str
    company: str
    remarks: str
    verified_at: datetime | None = None
    created: datetime
