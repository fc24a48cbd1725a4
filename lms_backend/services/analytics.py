"""Aggregate statistics over the user and course collections."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lms_backend.core.errors import StorageError
from lms_backend.models.course import Course
from lms_backend.models.enrollment import Enrollment
from lms_backend.models.user import User
from lms_backend.schemas.analytics import (
    CategoryStats,
    CourseAnalyticsResponse,
    RoleCount,
    UserAnalyticsResponse,
)

logger = logging.getLogger(__name__)


def compute_enrollment_rate(total_enrolled: int, count: int, average_capacity: float) -> float:
    # Groups whose mean capacity is zero report a rate of 0 instead of dividing by zero.
    if count == 0 or average_capacity == 0:
        return 0.0
    return round(total_enrolled / (count * average_capacity) * 100, 2)


def user_role_distribution(db: Session) -> UserAnalyticsResponse:
    try:
        rows = db.query(User.role, func.count(User.id)).group_by(User.role).all()
        total_users = db.query(func.count(User.id)).scalar() or 0
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error generating user analytics.')
        raise StorageError() from exc

    distribution = sorted(
        (RoleCount(role=role, count=count) for role, count in rows),
        key=lambda item: (-item.count, item.role),
    )

    logger.info('User analytics generated successfully')
    return UserAnalyticsResponse(total_users=total_users, role_distribution=distribution)


def course_category_distribution(db: Session) -> CourseAnalyticsResponse:
    try:
        roster_sizes = (
            db.query(Enrollment.course_id, func.count(Enrollment.id).label('enrolled'))
            .group_by(Enrollment.course_id)
            .subquery()
        )
        rows = (
            db.query(
                Course.category,
                func.count(Course.id),
                func.coalesce(func.sum(roster_sizes.c.enrolled), 0),
                func.avg(Course.capacity),
            )
            .outerjoin(roster_sizes, roster_sizes.c.course_id == Course.id)
            .group_by(Course.category)
            .all()
        )
        total_courses = db.query(func.count(Course.id)).scalar() or 0
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error generating course analytics.')
        raise StorageError() from exc

    distribution: list[CategoryStats] = []
    for category, count, total_enrolled, average_capacity in rows:
        average_capacity = float(average_capacity or 0)
        total_enrolled = int(total_enrolled or 0)
        distribution.append(
            CategoryStats(
                category=category,
                count=count,
                total_enrolled=total_enrolled,
                average_capacity=round(average_capacity, 2),
                enrollment_rate=compute_enrollment_rate(total_enrolled, count, average_capacity),
            )
        )
    distribution.sort(key=lambda item: (-item.count, item.category))

    logger.info('Course analytics generated successfully')
    return CourseAnalyticsResponse(total_courses=total_courses, category_distribution=distribution)
