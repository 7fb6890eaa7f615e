"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    INVITATION_EMAIL_MISMATCH = "INVITATION_EMAIL_MISMATCH"

    # Not found errors (404)
    ORGANIZATION_NOT_FOUND = "ORGANIZATION_NOT_FOUND"
    ROLE_NOT_FOUND = "ROLE_NOT_FOUND"
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Validation and invalid-state errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVITATION_INVALID = "INVITATION_INVALID"

    # Conflict errors (400)
    ALREADY_A_MEMBER = "ALREADY_A_MEMBER"
    DUPLICATE_INVITATION = "DUPLICATE_INVITATION"
    ORGANIZATION_SLUG_TAKEN = "ORGANIZATION_SLUG_TAKEN"
    ORGANIZATION_DOMAIN_TAKEN = "ORGANIZATION_DOMAIN_TAKEN"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


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


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=403,
        )


class ValidationError(AppException):
    """Domain-level validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.VALIDATION_ERROR,
            message=message,
            status_code=400,
            details={"field": field} if field else None,
        )


class OrganizationNotFoundError(AppException):
    """Organization not found."""

    def __init__(self, organization: str) -> None:
        super().__init__(
            error_code=ErrorCode.ORGANIZATION_NOT_FOUND,
            message="Organization not found",
            status_code=404,
            details={"organization": organization},
        )


class RoleNotFoundError(AppException):
    """Role not found in the organization."""

    def __init__(self, role_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ROLE_NOT_FOUND,
            message="Role not found in this organization",
            status_code=404,
            details={"role_id": role_id},
        )


class UserNotFoundError(AppException):
    """No local profile exists for the user."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.USER_NOT_FOUND,
            message="User not found",
            status_code=404,
            details={"user_id": user_id},
        )


class NotAMemberError(AppException):
    """User is not a member of the organization."""

    def __init__(self, organization: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_A_MEMBER,
            message="You are not a member of this organization",
            status_code=403,
            details={"organization": organization},
        )


class InsufficientPermissionsError(AppException):
    """User's role lacks the required permission."""

    def __init__(self, permission: str) -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message=f"Insufficient permissions. Required permission: {permission}",
            status_code=403,
            details={"required_permission": permission},
        )


class OrganizationSlugTakenError(AppException):
    """Organization slug is already taken."""

    def __init__(self, slug: str) -> None:
        super().__init__(
            error_code=ErrorCode.ORGANIZATION_SLUG_TAKEN,
            message=f"Organization slug already taken: {slug}",
            status_code=400,
            details={"slug": slug},
        )


class OrganizationDomainTakenError(AppException):
    """Another organization already claims this domain."""

    def __init__(self, domain: str) -> None:
        super().__init__(
            error_code=ErrorCode.ORGANIZATION_DOMAIN_TAKEN,
            message=f"An organization already exists for domain: {domain}",
            status_code=400,
            details={"domain": domain},
        )


class AlreadyAMemberError(AppException):
    """User is already a member of the organization."""

    def __init__(self, user: str) -> None:
        super().__init__(
            error_code=ErrorCode.ALREADY_A_MEMBER,
            message="User is already a member of this organization",
            status_code=400,
            details={"user": user},
        )


class InvitationNotFoundError(AppException):
    """Invitation not found."""

    def __init__(self, invitation_id: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_NOT_FOUND,
            message="Invitation not found",
            status_code=404,
            details={"invitation_id": invitation_id} if invitation_id else None,
        )


class InvitationInvalidError(AppException):
    """Invitation can no longer be used (expired or already resolved)."""

    def __init__(self, reason: str, status: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_INVALID,
            message=reason,
            status_code=400,
            details={"status": status} if status else None,
        )


class DuplicateInvitationError(AppException):
    """A pending invitation already exists for this email and organization."""

    def __init__(self, email: str) -> None:
        super().__init__(
            error_code=ErrorCode.DUPLICATE_INVITATION,
            message="An invitation has already been sent to this email",
            status_code=400,
            details={"email": email},
        )


class InvitationEmailMismatchError(AppException):
    """The user's email does not match the invitation email."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_EMAIL_MISMATCH,
            message="This invitation is for a different email address",
            status_code=403,
        )
