"""Domain errors raised by the enrollment and analytics services.

Every error carries the HTTP status the API answers with and a structured
``detail`` payload, so the routes can translate them without knowing about
individual error types.
"""

from typing import Any


class LMSError(Exception):
    status_code = 400
    message = 'Request could not be processed.'

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)

    @property
    def detail(self) -> Any:
        return self.message


class RecordValidationError(LMSError):
    """Malformed or missing fields on a user or course record."""

    status_code = 422
    message = 'Invalid record.'

    def __init__(self, message: str | None = None, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    @property
    def detail(self) -> Any:
        if not self.errors:
            return self.message
        return {'error': self.message, 'errors': self.errors}


class DuplicateEmailError(RecordValidationError):
    status_code = 409
    message = 'Email already registered.'


class NotFoundError(LMSError):
    status_code = 404
    message = 'Record not found.'


class AlreadyEnrolledError(LMSError):
    status_code = 409
    message = 'Student is already enrolled in this course.'


class NotEnrolledError(LMSError):
    status_code = 409
    message = 'Student is not enrolled in this course.'


class CapacityExceededError(LMSError):
    status_code = 409
    message = 'Course has reached maximum capacity.'

    def __init__(self, capacity: int) -> None:
        super().__init__()
        self.capacity = capacity

    @property
    def detail(self) -> Any:
        return {'error': self.message, 'capacity': self.capacity}


class HasEnrollmentsError(LMSError):
    status_code = 409
    message = 'Cannot delete course with enrolled students.'

    def __init__(self, enrolled_count: int) -> None:
        super().__init__()
        self.enrolled_count = enrolled_count

    @property
    def detail(self) -> Any:
        return {'error': self.message, 'enrolled_count': self.enrolled_count}


class StorageError(LMSError):
    status_code = 503
    message = 'Database unavailable. Verify DATABASE_URL and database credentials.'
