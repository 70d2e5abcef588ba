"""
Custom exceptions for the ProjectFlow workflow core.

Every workflow error is an APIException so the HTTP layer can convert it
with `to_response()`. The core raises; it never retries.
"""

from ninja import Schema


class ErrorSchema(Schema):
    """Standard error response schema."""

    code: str
    message: str
    details: dict | None = None


class APIException(Exception):
    """Base exception for API errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred."

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict | None = None,
    ):
        self.message = message or self.__class__.message
        self.code = code or self.__class__.code
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> tuple[int, ErrorSchema]:
        """Convert exception to API response tuple."""
        return self.status_code, ErrorSchema(
            code=self.code,
            message=self.message,
            details=self.details,
        )


# Authentication Exceptions
class NotAuthenticatedError(APIException):
    """User is not authenticated."""

    status_code = 401
    code = "NOT_AUTHENTICATED"
    message = "Authentication required."


# Authorization Exceptions
class PermissionDeniedError(APIException):
    """User doesn't have required permissions."""

    status_code = 403
    code = "PERMISSION_DENIED"
    message = "You do not have the required permissions."


class NotLeaderError(PermissionDeniedError):
    """Requester is not the leader of the group."""

    code = "NOT_LEADER"
    message = "Only the group leader can perform this action."


# Resource Exceptions
class NotFoundError(APIException):
    """Resource not found."""

    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found."


# Validation Exceptions
class ValidationError(APIException):
    """Invalid input data."""

    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid data."


class QuorumNotMetError(ValidationError):
    """Active member count is outside the group's bounds."""

    code = "QUORUM_NOT_MET"
    message = "The group does not have the required number of members."


class WindowClosedError(ValidationError):
    """A configured registration window is not open."""

    code = "WINDOW_CLOSED"
    message = "This window is not open."


class NotInPreferencesError(ValidationError):
    """Faculty does not appear in the project's preference list."""

    code = "NOT_IN_PREFERENCES"
    message = "This faculty is not listed in the project's preferences."


# Conflict Exceptions
class ConflictError(APIException):
    """The operation lost against the current state; re-fetch and retry."""

    status_code = 409
    code = "CONFLICT"
    message = "The resource changed. Refresh and try again."


class InvalidTransitionError(ConflictError):
    """The requested status transition is not allowed from the current state."""

    code = "INVALID_TRANSITION"
    message = "This action is not allowed in the current state."


class AlreadyFinalizedError(ConflictError):
    """Group is already finalized (or frozen)."""

    code = "ALREADY_FINALIZED"
    message = "The group is already finalized."


class GroupFullError(ConflictError):
    """Group reached its maximum member count."""

    code = "GROUP_FULL"
    message = "The group is full."


class DuplicateInvitationError(ConflictError):
    """A pending invitation already exists for the group/student pair."""

    code = "DUPLICATE_INVITATION"
    message = "A pending invitation already exists for this student."


class StudentAlreadyGroupedError(ConflictError):
    """Student already holds an active membership for the semester."""

    code = "STUDENT_ALREADY_GROUPED"
    message = "The student is already a member of a group this semester."


class InviteTargetUnavailable(StudentAlreadyGroupedError):
    """A candidate of a bulk invite already belongs to another group."""

    code = "INVITE_TARGET_UNAVAILABLE"
    message = "One or more students already belong to another group this semester."


class InvitationExpiredError(ConflictError):
    """The invitation is no longer pending."""

    code = "INVITATION_EXPIRED"
    message = "This invitation is no longer pending."


class AlreadyAllocatedError(ConflictError):
    """Project already has an allocated faculty."""

    code = "ALREADY_ALLOCATED"
    message = "A faculty has already been allocated to this project."


class AlreadyExistsError(ConflictError):
    """Resource already exists."""

    code = "ALREADY_EXISTS"
    message = "This resource already exists."
