"""Promotion schemas for API requests and responses."""

from .promotion import IneligibilitySchema, PromotionRequestSchema, PromotionResultSchema, PromotionTaskSchema

__all__ = [
    "PromotionRequestSchema",
    "IneligibilitySchema",
    "PromotionResultSchema",
    "PromotionTaskSchema",
]
