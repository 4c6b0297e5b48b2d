"""
Custom exception classes for unified error handling.

Missing-value and invalid-argument errors are hard failures. A time conflict
is never an exception: add/update report it by returning False.
"""

from fastapi import HTTPException, status


class AppBaseError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class MissingValueError(AppBaseError, TypeError):
    """Raised when a required argument (event, listener, date, subject) is None."""
    def __init__(self, name: str):
        super().__init__(message=f"{name} cannot be None")


class InvalidArgumentError(AppBaseError, ValueError):
    """Raised when a value is present but breaks a domain rule."""


class DuplicateEventError(InvalidArgumentError):
    """Raised when an event with the same subject, date and start time already exists."""
    def __init__(self, message: str = "An event with the same subject, date, and time already exists"):
        super().__init__(
            message=message,
            detail="Change the subject, date or start time of the event.",
        )


class EventNotFoundError(InvalidArgumentError):
    """Raised when no event matches a (subject, date, time) lookup."""
    def __init__(self, message: str = "Original event not found"):
        super().__init__(message=message)


class CalendarNotFoundError(AppBaseError):
    """Raised when the store has no calendar with the requested title."""
    def __init__(self, title: str):
        super().__init__(message=f"Calendar '{title}' not found")


class CalendarStorageError(AppBaseError, OSError):
    """Raised when the calendars file is missing or cannot be read/written."""
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message=message, detail=detail)


# ── Utility: convert to HTTPException ────────────────────

def app_error_to_http(error: AppBaseError, status_code: int = status.HTTP_400_BAD_REQUEST) -> HTTPException:
    """Convert an AppBaseError to an HTTPException with consistent JSON body."""
    return HTTPException(
        status_code=status_code,
        detail={
            "error": error.message,
            "detail": error.detail,
            "type": type(error).__name__,
        },
    )
