"""Domain Errors

Every failure the reservation engine reports is one of these. They are raised
before anything is committed, so a caller that sees one knows nothing was
written.
"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for typed domain failures"""

    error_code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to the API error body"""
        return {
            "detail": self.message,
            "error": {
                "code": self.error_code,
                "type": self.__class__.__name__,
                "details": self.details,
            },
        }


class ValidationError(DomainError):
    """Missing or malformed input, e.g. check-out not after check-in"""

    error_code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(DomainError):
    """Room, guest, reservation or task does not exist"""

    error_code = "RESOURCE_NOT_FOUND"
    status_code = 404


class ConflictError(DomainError):
    """Requested dates overlap an active reservation on the same room"""

    error_code = "BOOKING_CONFLICT"
    status_code = 409


class InvalidTransitionError(DomainError):
    """State machine precondition violated"""

    error_code = "INVALID_TRANSITION"
    status_code = 400


class UnauthorizedError(DomainError):
    """Acting principal lacks the role the operation requires"""

    error_code = "INSUFFICIENT_PERMISSIONS"
    status_code = 403
