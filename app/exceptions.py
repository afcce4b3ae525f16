"""
Domain exceptions for the Drive API.

Each exception carries the HTTP status and the public message used by the
exception handler in app.main. Messages are static so no internal detail
(SQL text, paths, stack traces) reaches the client.
"""


class DriveError(Exception):
    """Base exception for identity and hierarchy operations."""

    status_code: int = 500
    error: str = "Error"
    message: str = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class Unauthenticated(DriveError):
    """Raised when a request carries no token or an invalid one."""

    status_code = 401
    error = "Unauthorized"
    message = "Missing or invalid token"


class InvalidToken(DriveError):
    """Raised by token verification; the gateway maps it to Unauthenticated."""

    status_code = 401
    error = "Unauthorized"
    message = "Invalid token"


class InvalidCredentials(DriveError):
    status_code = 401
    error = "Unauthorized"
    message = "Invalid credentials"


class DuplicateIdentity(DriveError):
    status_code = 409
    error = "Conflict"
    message = "Email already exists"


class InvalidInput(DriveError):
    status_code = 400
    error = "Bad Request"
    message = "Invalid input"


class InvalidName(InvalidInput):
    message = "Name must not be empty"


class MissingFile(InvalidInput):
    message = "Missing file"


class InvalidMove(InvalidInput):
    message = "Folder cannot be moved into itself or one of its descendants"


class NotFound(DriveError):
    """Raised when an entity is absent or owned by another user."""

    status_code = 404
    error = "Not Found"
    message = "Not found"


class ParentNotFound(NotFound):
    message = "Parent folder not found"


class FolderNotFound(NotFound):
    message = "Folder not found"


class StorageFailure(DriveError):
    """Raised when the underlying store is unavailable or a transaction fails."""

    status_code = 503
    error = "Service Unavailable"
    message = "Storage temporarily unavailable"
