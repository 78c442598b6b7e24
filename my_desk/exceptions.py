"""Domain errors raised by the My Desk stores and API."""


class MyDeskError(Exception):
    """Base exception for business rule violations."""

    status_code = 500


class ValidationError(MyDeskError):
    """Raised when input data is invalid or incomplete."""

    status_code = 400


class AuthenticationError(MyDeskError):
    """Raised when a request carries no valid credential."""

    status_code = 401


class AuthorizationError(MyDeskError):
    """Raised when the caller's role is below the required rank."""

    status_code = 403


class NotFoundError(MyDeskError):
    """Raised when a record id does not exist."""

    status_code = 404


class DuplicateFileNumberError(MyDeskError):
    """Raised when a register file number is already taken."""

    status_code = 409

    def __init__(self, file_no: str) -> None:
        super().__init__("Duplicate file number")
        self.file_no = file_no


__all__ = [
    "MyDeskError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "DuplicateFileNumberError",
]
