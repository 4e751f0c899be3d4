"""Domain failures raised by the service layer.

All are recoverable at the caller boundary; the API maps each kind to a
distinct HTTP status. Persistence errors are not wrapped and surface as
internal failures.
"""


class CellarError(Exception):
    """Base class for expected, caller-visible failures."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(CellarError):
    kind = "not_found"


class ForbiddenError(CellarError):
    kind = "forbidden"


class ConflictError(CellarError):
    kind = "conflict"


class InvalidOperationError(CellarError):
    kind = "invalid_operation"
