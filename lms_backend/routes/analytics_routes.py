from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms_backend.auth.dependencies import require_role
from lms_backend.core.errors import LMSError
from lms_backend.database import get_db
from lms_backend.models.user import User
from lms_backend.routes.common import ALL_ROLES, as_http_exception, ensure_database_ready
from lms_backend.schemas.analytics import CourseAnalyticsResponse, UserAnalyticsResponse
from lms_backend.services import analytics

router = APIRouter(tags=['analytics'])


@router.get('/user-count', response_model=UserAnalyticsResponse)
def get_user_analytics(
    db: Session = Depends(get_db),
    _: User = Depends(require_role(*ALL_ROLES)),
):
    ensure_database_ready()

    try:
        return analytics.user_role_distribution(db)
    except LMSError as exc:
        raise as_http_exception(exc) from exc


@router.get('/course-count', response_model=CourseAnalyticsResponse)
def get_course_analytics(
    db: Session = Depends(get_db),
    _: User = Depends(require_role(*ALL_ROLES)),
):
    ensure_database_ready()

    try:
        return analytics.course_category_distribution(db)
    except LMSError as exc:
        raise as_http_exception(exc) from exc
