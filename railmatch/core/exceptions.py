"""Custom exceptions for the RailMatch application."""


class RailMatchException(Exception):
    """Base exception for RailMatch application."""

    pass


class ValidationError(RailMatchException):
    """Raised when validation fails."""

    pass


class NotFoundError(RailMatchException):
    """Raised when a resource is not found."""

    pass


class PermissionDeniedError(RailMatchException):
    """Raised when a resource does not belong to the calling company."""

    pass


class IllegalTransitionError(RailMatchException):
    """Raised when a deal status change is not allowed from the current status."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Invalid status transition from {current} to {requested}")


class DatabaseError(RailMatchException):
    """Raised when a database operation fails."""

    pass


class ConfigurationError(RailMatchException):
    """Raised when configuration is invalid."""

    pass
