class InterviewStudioError(Exception):
    """Base exception for Interview Studio.

    ``code`` is the machine-readable error code returned to API callers and
    ``status_code`` the HTTP status the API layer maps it to.
    """

    code = "internal_error"
    status_code = 500

    def __init__(self, message: str, *, details: list[str] | None = None):
        self.message = message
        self.details = details or []
        super().__init__(message)


class ValidationError(InterviewStudioError):
    """Raised on bad input: no questions, nothing to finalize, rejected answer."""

    code = "validation_error"
    status_code = 400

    @property
    def warnings(self) -> list[str]:
        return self.details


class NotFoundError(InterviewStudioError):
    """Raised when a session does not exist (or was soft-deleted)."""

    code = "not_found"
    status_code = 404


class InvalidStateError(InterviewStudioError):
    """Raised when mutating a session whose status forbids it."""

    code = "invalid_state"
    status_code = 409


class ConflictError(InterviewStudioError):
    """Raised when a session changed underneath a versioned write."""

    code = "conflict"
    status_code = 409

    def __init__(self, message: str, *, expected_version: int | None = None, actual_version: int | None = None):
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(message)


class PersistenceError(InterviewStudioError):
    """Raised when a datastore read or write fails."""

    code = "persistence_error"
    status_code = 503


class GenerationError(InterviewStudioError):
    """Raised when the AI provider fails on a path that has no fallback."""

    code = "generation_error"
    status_code = 502
