"""Groups schemas for API requests and responses."""

from .groups import (
    GroupCreateSchema,
    GroupDetailSchema,
    GroupListSchema,
    GroupMemberSchema,
    InvitationCreateSchema,
    InvitationResponseSchema,
    InvitationSchema,
    StudentMinimalSchema,
    TransferLeadershipSchema,
)

__all__ = [
    "StudentMinimalSchema",
    "GroupMemberSchema",
    "GroupListSchema",
    "GroupDetailSchema",
    "GroupCreateSchema",
    "InvitationSchema",
    "InvitationCreateSchema",
    "InvitationResponseSchema",
    "TransferLeadershipSchema",
]
