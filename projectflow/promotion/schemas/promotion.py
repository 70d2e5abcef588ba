"""
Promotion schemas for API requests and responses.
"""

from uuid import UUID

from ninja import Schema
from pydantic import field_validator, model_validator


class PromotionRequestSchema(Schema):
    """Cohort selector and target semester."""

    from_semester: int
    to_semester: int
    student_ids: list[UUID] | None = None
    degree: str | None = None
    validate_prerequisites: bool = False
    academic_year: str | None = None

    @field_validator("from_semester", "to_semester")
    @classmethod
    def semester_in_range(cls, v: int) -> int:
        if not 1 <= v <= 8:
            raise ValueError("Semesters range from 1 to 8.")
        return v

    @model_validator(mode="after")
    def forward_only(self):
        if self.to_semester <= self.from_semester:
            raise ValueError("The target semester must follow the source semester.")
        return self


class IneligibilitySchema(Schema):
    student_id: UUID
    code: str
    message: str


class PromotionResultSchema(Schema):
    eligible: list[UUID]
    ineligible: list[IneligibilitySchema]
    promoted: list[UUID]
    groups_locked: list[UUID]
    groups_disbanded: list[UUID]
    errors: list[dict]
    committed: bool


class PromotionTaskSchema(Schema):
    task_id: str
