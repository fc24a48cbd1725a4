from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from lms_backend.core.errors import LMSError, StorageError
from lms_backend.database import ensure_lms_schema

STAFF_ROLES = ('admin', 'instructor')
ALL_ROLES = ('admin', 'instructor', 'student')


def ensure_database_ready() -> None:
    try:
        ensure_lms_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=StorageError.message,
        ) from exc


def as_http_exception(exc: LMSError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)
