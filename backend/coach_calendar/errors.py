"""
Domain error taxonomy.

Each error carries the HTTP status it maps to and a short machine-readable
reason, so callers can tell "already taken" apart from "storage unavailable".
"""


class BookingServiceError(Exception):
    status_code = 500
    reason = "internal_error"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason


class ValidationError(BookingServiceError):
    """Malformed input."""
    status_code = 400
    reason = "invalid_request"


class ConflictError(BookingServiceError):
    """Uniqueness violation or contradictory slot state."""
    status_code = 409
    reason = "conflict"


class NotFoundError(BookingServiceError):
    status_code = 404
    reason = "not_found"


class DependencyError(BookingServiceError):
    """Storage or an external collaborator (SMTP, Zoom) is unavailable."""
    status_code = 500
    reason = "dependency_error"
