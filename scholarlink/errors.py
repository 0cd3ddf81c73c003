"""
Exception hierarchy for the ScholarLink client core.

Every error carries a user-facing message plus optional details for logs.
The API layer maps each class to an HTTP status and error code.
"""
from typing import Any, Dict, Optional


class ScholarLinkError(Exception):
    """Base exception for all ScholarLink errors."""

    code = "SCHOLARLINK_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(ScholarLinkError):
    """Raised when form input is missing or invalid. No remote call is made."""

    code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        details = details or {}
        if field:
            details["field"] = field
        self.field = field
        super().__init__(message, details)


class InvalidTransitionError(ScholarLinkError):
    """Raised when a session transition is attempted from an ineligible state."""

    code = "INVALID_TRANSITION"
    status_code = 409

    def __init__(self, session_id, action: str, current_state: str, message: Optional[str] = None) -> None:
        self.session_id = session_id
        self.action = action
        self.current_state = current_state
        super().__init__(
            message or f"Cannot {action} a session that is {current_state}",
            {"session_id": str(session_id), "action": action, "current_state": current_state},
        )


class AlreadyRatedError(InvalidTransitionError):
    """Raised when a session that already has a rating is rated again."""

    code = "ALREADY_RATED"

    def __init__(self, session_id) -> None:
        super().__init__(session_id, "rate", "rated", message="This session has already been rated")


class NotFoundError(ScholarLinkError):
    """Raised when a referenced record is not in the local cache or remote store."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier) -> None:
        super().__init__(f"{resource} not found", {"resource": resource, "id": str(identifier)})


class NotSignedInError(ScholarLinkError):
    """Raised when an operation requires a signed-in user."""

    code = "NOT_SIGNED_IN"
    status_code = 401

    def __init__(self, message: str = "Please sign in to continue") -> None:
        super().__init__(message)


class AuthenticationError(ScholarLinkError):
    """Raised when the remote auth service rejects credentials or a token."""

    code = "AUTH_FAILED"
    status_code = 401


class PermissionDeniedError(ScholarLinkError):
    """Raised when the signed-in user's role does not allow the action."""

    code = "PERMISSION_DENIED"
    status_code = 403


class RemoteOperationError(ScholarLinkError):
    """
    Raised when the backend (database, key-value store, auth, storage) fails.

    The original exception is logged by the caller and chained with
    ``raise ... from exc``; only the static retry message reaches the user.
    """

    code = "REMOTE_ERROR"
    status_code = 503

    def __init__(self, user_message: str = "Something went wrong. Please try again.") -> None:
        super().__init__(user_message)


class ReminderSchedulingError(ScholarLinkError):
    """Raised when a single local reminder cannot be scheduled."""

    code = "REMINDER_NOT_SCHEDULED"
    status_code = 409
