"""
Base schemas for the API.
"""

from ninja import Schema


class MessageSchema(Schema):
    """Schema for simple message responses."""

    success: bool
    message: str
