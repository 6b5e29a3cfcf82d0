class ServiceError(Exception):
    """Base error for marketplace services."""


class UnavailableError(ServiceError):
    """Raised when the database is unavailable or not configured."""


class NotFoundError(ServiceError):
    """Raised when the requested entity does not exist."""


class ConflictError(ServiceError):
    """Raised when a write collides with the current stored state."""


class ForbiddenError(ServiceError):
    """Raised when the caller does not own the resource."""


class ValidationError(ServiceError):
    """Raised when input validation fails before persistence."""
