"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Coarse error taxonomy exposed to callers alongside the specific code."""

    BAD_REQUEST = "bad_request"
    UNAUTHORISED = "unauthorised"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"


_STATUS_TO_KIND = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORISED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
    429: ErrorKind.RATE_LIMITED,
}


def kind_for_status(status_code: int) -> ErrorKind:
    """Map an HTTP status to its error kind; unknown 4xx are bad requests."""
    if status_code in _STATUS_TO_KIND:
        return _STATUS_TO_KIND[status_code]
    return ErrorKind.BAD_REQUEST if 400 <= status_code < 500 else ErrorKind.INTERNAL


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVITATION_EMAIL_MISMATCH = "INVITATION_EMAIL_MISMATCH"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Not found errors (404)
    USER_NOT_FOUND = "USER_NOT_FOUND"
    TEAM_NOT_FOUND = "TEAM_NOT_FOUND"
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
    MILESTONE_NOT_FOUND = "MILESTONE_NOT_FOUND"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ROLE = "INVALID_ROLE"
    INVALID_ASSIGNEES = "INVALID_ASSIGNEES"
    INVALID_INVITATION_TOKEN = "INVALID_INVITATION_TOKEN"
    INVITATION_REVOKED = "INVITATION_REVOKED"
    INVITATION_EXPIRED = "INVITATION_EXPIRED"
    PERSONAL_TEAM = "PERSONAL_TEAM"

    # Conflict errors (409)
    LAST_OWNER = "LAST_OWNER"
    LAST_ADMIN = "LAST_ADMIN"
    ALREADY_A_MEMBER = "ALREADY_A_MEMBER"
    DUPLICATE_INVITATION = "DUPLICATE_INVITATION"
    INVITATION_ALREADY_ACCEPTED = "INVITATION_ALREADY_ACCEPTED"
    EMAIL_TAKEN = "EMAIL_TAKEN"
    SLUG_GENERATION_FAILED = "SLUG_GENERATION_FAILED"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class TokenErrorKind(StrEnum):
    """Why an invitation token failed verification."""

    MALFORMED = "malformed"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    @property
    def kind(self) -> ErrorKind:
        """Error taxonomy bucket derived from the HTTP status."""
        return kind_for_status(self.status_code)


# --- Kind bases ---


class BadRequestError(AppException):
    """Malformed input or a request that can never succeed as sent."""

    def __init__(
        self,
        message: str = "Bad request",
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorisedError(AppException):
    """Caller is not authenticated, or authenticated as the wrong user."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
            details=details,
        )


class ForbiddenError(AppException):
    """Caller lacks the role required for the action."""

    def __init__(
        self,
        message: str = "Access denied",
        error_code: ErrorCode = ErrorCode.FORBIDDEN,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=403,
            details=details,
        )


class NotFoundError(AppException):
    """Resource absent or slug unresolved."""

    def __init__(
        self,
        message: str = "Not found",
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=404,
            details=details,
        )


class ConflictError(AppException):
    """The change would violate an invariant or duplicate existing state."""

    def __init__(
        self,
        message: str = "Conflict",
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=409,
            details=details,
        )


class InternalError(AppException):
    """Unexpected backing-store failure."""

    def __init__(self, message: str = "Internal error") -> None:
        super().__init__(
            error_code=ErrorCode.DATABASE_ERROR,
            message=message,
            status_code=500,
        )


# --- Authentication ---


class InvalidCredentialsError(UnauthorisedError):
    """E-mail/password pair did not match."""

    def __init__(self) -> None:
        super().__init__(
            message="Invalid email or password",
            error_code=ErrorCode.INVALID_CREDENTIALS,
        )


class InvitationEmailMismatchError(UnauthorisedError):
    """Caller is anonymous or signed in with an e-mail other than the invitee's.

    ``details["email"]`` carries the invited address so the caller can send
    the user to signup/login prefilled with it.
    """

    def __init__(self, email: str) -> None:
        super().__init__(
            message="Sign in or sign up with the invited email to accept this invitation",
            error_code=ErrorCode.INVITATION_EMAIL_MISMATCH,
            details={"email": email},
        )


# --- Authorization ---


class NotAMemberError(ForbiddenError):
    """User has no membership on the resource."""

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(
            message=f"You are not a member of this {resource}",
            error_code=ErrorCode.NOT_A_MEMBER,
            details={f"{resource}_id": resource_id},
        )


class InsufficientPermissionsError(ForbiddenError):
    """User does not have sufficient permissions."""

    def __init__(self, action: str, resource: str = "") -> None:
        target = f" on {resource}" if resource else ""
        super().__init__(
            message=f"Insufficient permissions to {action}{target}",
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            details={"action": action, "resource": resource} if resource else {"action": action},
        )


# --- Not found ---


class UserNotFoundError(NotFoundError):
    """User not found."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            message=f"User not found: {user_id}",
            error_code=ErrorCode.USER_NOT_FOUND,
            details={"user_id": user_id},
        )


class TeamNotFoundError(NotFoundError):
    """Team not found (or soft-deleted)."""

    def __init__(self, team_id: str) -> None:
        super().__init__(
            message=f"Team not found: {team_id}",
            error_code=ErrorCode.TEAM_NOT_FOUND,
            details={"team_id": team_id},
        )


class ProjectNotFoundError(NotFoundError):
    """Project not found."""

    def __init__(self, project_id: str) -> None:
        super().__init__(
            message=f"Project not found: {project_id}",
            error_code=ErrorCode.PROJECT_NOT_FOUND,
            details={"project_id": project_id},
        )


class MilestoneNotFoundError(NotFoundError):
    """Milestone not found."""

    def __init__(self, milestone_id: str) -> None:
        super().__init__(
            message=f"Milestone not found: {milestone_id}",
            error_code=ErrorCode.MILESTONE_NOT_FOUND,
            details={"milestone_id": milestone_id},
        )


class MemberNotFoundError(NotFoundError):
    """Target user holds no membership on the resource."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            message="User is not a member",
            error_code=ErrorCode.MEMBER_NOT_FOUND,
            details={"user_id": user_id},
        )


class InvitationNotFoundError(NotFoundError):
    """Invitation not found."""

    def __init__(self, invitation_id: str = "") -> None:
        super().__init__(
            message="Invitation not found",
            error_code=ErrorCode.INVITATION_NOT_FOUND,
            details={"invitation_id": invitation_id} if invitation_id else None,
        )


# --- Bad request ---


class InvalidRoleError(BadRequestError):
    """Role is unknown or not valid for the resource kind."""

    def __init__(self, role: str, resource: str) -> None:
        super().__init__(
            message=f"Invalid role for {resource}: {role}",
            error_code=ErrorCode.INVALID_ROLE,
            details={"role": role, "resource": resource},
        )


class InvalidAssigneesError(BadRequestError):
    """One or more assignees are not members of the milestone's project."""

    def __init__(self, user_ids: list[str]) -> None:
        super().__init__(
            message="Assignees must be members of the project",
            error_code=ErrorCode.INVALID_ASSIGNEES,
            details={"invalid_user_ids": user_ids},
        )


class InvitationTokenError(BadRequestError):
    """Invitation token failed signature, structure or expiry checks."""

    def __init__(self, reason: TokenErrorKind) -> None:
        self.reason = reason
        super().__init__(
            message=f"Invalid invitation token: {reason.value.replace('_', ' ')}",
            error_code=ErrorCode.INVALID_INVITATION_TOKEN,
            details={"reason": reason.value},
        )


class InvitationRevokedError(BadRequestError):
    """Invitation was revoked."""

    def __init__(self) -> None:
        super().__init__(
            message="This invitation has been revoked",
            error_code=ErrorCode.INVITATION_REVOKED,
        )


class InvitationExpiredError(BadRequestError):
    """Invitation has expired."""

    def __init__(self) -> None:
        super().__init__(
            message="This invitation has expired",
            error_code=ErrorCode.INVITATION_EXPIRED,
        )


class PersonalTeamError(BadRequestError):
    """Operation is not allowed on a personal team."""

    def __init__(self, message: str = "Personal teams cannot be changed this way") -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.PERSONAL_TEAM,
        )


# --- Conflict ---


class LastOwnerError(ConflictError):
    """Cannot remove or demote the last owner."""

    def __init__(self, resource: str = "team") -> None:
        super().__init__(
            message=f"Cannot remove or demote the last owner of a {resource}",
            error_code=ErrorCode.LAST_OWNER,
            details={"resource": resource},
        )


class LastAdminError(ConflictError):
    """Cannot remove the last admin-or-above of an ownerless project."""

    def __init__(self) -> None:
        super().__init__(
            message="Cannot remove the last administrator of a project without an owner",
            error_code=ErrorCode.LAST_ADMIN,
        )


class AlreadyAMemberError(ConflictError):
    """User is already a member."""

    def __init__(self, email: str) -> None:
        super().__init__(
            message="User is already a member",
            error_code=ErrorCode.ALREADY_A_MEMBER,
            details={"email": email},
        )


class DuplicateInvitationError(ConflictError):
    """A pending invitation already exists for this email and resource."""

    def __init__(self, email: str) -> None:
        super().__init__(
            message="You have already invited this user",
            error_code=ErrorCode.DUPLICATE_INVITATION,
            details={"email": email},
        )


class InvitationAlreadyAcceptedError(ConflictError):
    """Invitation was consumed by another account."""

    def __init__(self) -> None:
        super().__init__(
            message="This invitation has already been accepted",
            error_code=ErrorCode.INVITATION_ALREADY_ACCEPTED,
        )


class EmailTakenError(ConflictError):
    """An account already exists for the e-mail."""

    def __init__(self, email: str) -> None:
        super().__init__(
            message="An account with this email already exists",
            error_code=ErrorCode.EMAIL_TAKEN,
            details={"email": email},
        )


class SlugGenerationError(ConflictError):
    """Every generated slug collided with an existing one."""

    def __init__(self, name: str, attempts: int) -> None:
        super().__init__(
            message=f"Could not generate a unique slug for {name!r}",
            error_code=ErrorCode.SLUG_GENERATION_FAILED,
            details={"name": name, "attempts": attempts},
        )
