class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ConflictError(ServiceError):
    """Raised when a write would duplicate a record that must be unique."""

    def __init__(self, message: str, field: str | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.field = field
