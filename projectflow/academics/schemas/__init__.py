"""Academics schemas for API requests and responses."""

from .academics import (
    ApplicationCreateSchema,
    ApplicationReviewSchema,
    ApplicationSchema,
    SelectionSchema,
    TrackChoiceSchema,
    TrackFinalizeSchema,
)

__all__ = [
    "TrackChoiceSchema",
    "TrackFinalizeSchema",
    "SelectionSchema",
    "ApplicationCreateSchema",
    "ApplicationReviewSchema",
    "ApplicationSchema",
]
