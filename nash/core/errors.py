"""
Error taxonomy shared by the storage layer, the pipeline and the HTTP API.
"""


class NashError(Exception):
    """Base class for service errors."""
    pass


class StorageError(NashError):
    """The underlying SQLite store was unreachable or a query failed."""

    def __init__(self, operation: str, cause: Exception = None):
        self.operation = operation
        self.cause = cause
        message = f"Storage operation '{operation}' failed"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class AuthError(NashError):
    """The supplied API key is missing, unknown or expired."""
    pass
