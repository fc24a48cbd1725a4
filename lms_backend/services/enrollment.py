"""Course, user and roster mutations.

The roster of a course and the enrolled-course list of a user are both read
from the ``enrollments`` table, so every enroll/unenroll is a single row
write inside one transaction. Roster changes for a course are serialized by a
per-course lock in this process and by a row lock on the course inside the
transaction, and the capacity check is repeated under both before the write.

Operations touching a user's enrollments take that user's lock before any
course lock, so enroll, unenroll and delete_user cannot deadlock each other.
"""

import logging
from contextlib import ExitStack, contextmanager
from threading import Lock
from weakref import WeakValueDictionary

import pydantic
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lms_backend.core.errors import (
    AlreadyEnrolledError,
    CapacityExceededError,
    DuplicateEmailError,
    HasEnrollmentsError,
    LMSError,
    NotEnrolledError,
    NotFoundError,
    RecordValidationError,
    StorageError,
)
from lms_backend.models.course import Course
from lms_backend.models.enrollment import Enrollment
from lms_backend.models.user import User
from lms_backend.schemas.course import CreateCourseRequest, UpdateCourseRequest
from lms_backend.schemas.user import CreateUserRequest

logger = logging.getLogger(__name__)

_record_locks: WeakValueDictionary = WeakValueDictionary()
_record_locks_guard = Lock()


def _record_lock(kind: str, record_id: int) -> Lock:
    # Entries disappear once no caller holds the lock.
    key = (kind, record_id)
    with _record_locks_guard:
        lock = _record_locks.get(key)
        if lock is None:
            lock = Lock()
            _record_locks[key] = lock
        return lock


def _course_lock(course_id: int) -> Lock:
    return _record_lock('course', course_id)


def _user_lock(user_id: int) -> Lock:
    return _record_lock('user', user_id)


@contextmanager
def _unit_of_work(db: Session, action: str):
    try:
        yield
    except LMSError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Storage failure while %s.', action)
        raise StorageError() from exc


def _parse(model_cls, fields, message: str):
    if isinstance(fields, model_cls):
        return fields
    try:
        return model_cls.model_validate(fields)
    except pydantic.ValidationError as exc:
        errors = [
            {'field': '.'.join(str(part) for part in error['loc']), 'message': error['msg']}
            for error in exc.errors()
        ]
        raise RecordValidationError(message, errors=errors) from exc


def _lock_course(db: Session, course_id: int) -> Course | None:
    return db.query(Course).filter(Course.id == course_id).with_for_update().first()


def _lock_student(db: Session, student_id: int) -> User | None:
    return db.query(User).filter(User.id == student_id).with_for_update().first()


def _find_enrollment(db: Session, course_id: int, student_id: int) -> Enrollment | None:
    return db.query(Enrollment).filter(
        Enrollment.course_id == course_id,
        Enrollment.student_id == student_id,
    ).first()


def _roster_size(db: Session, course_id: int) -> int:
    return db.query(func.count(Enrollment.id)).filter(Enrollment.course_id == course_id).scalar() or 0


def create_user(db: Session, fields: CreateUserRequest | dict) -> User:
    data = _parse(CreateUserRequest, fields, 'Invalid user.')

    with _unit_of_work(db, 'creating a user'):
        if db.query(User.id).filter(User.email == data.email).first():
            raise DuplicateEmailError()

        user = User(email=data.email, name=data.name, role=data.role)
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise DuplicateEmailError() from exc
        db.refresh(user)

    logger.info('User created: %s (%s)', user.id, user.role)
    return user


def get_user(db: Session, user_id: int) -> User:
    with _unit_of_work(db, 'loading a user'):
        user = db.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found.')
    return user


def list_users(db: Session, role: str | None = None) -> list[User]:
    with _unit_of_work(db, 'listing users'):
        query = db.query(User)
        if role:
            query = query.filter(User.role == role.strip().lower())
        return query.order_by(User.id.asc()).all()


def delete_user(db: Session, user_id: int) -> list[int]:
    """Delete a user and drop them from every roster they appear in.

    Courses the user instructs are kept with their instructor cleared.
    Returns the ids of the courses the user was removed from.
    """
    with ExitStack() as locks:
        locks.enter_context(_user_lock(user_id))
        locks.enter_context(_unit_of_work(db, 'deleting a user'))

        user = db.query(User).filter(User.id == user_id).with_for_update().first()
        if user is None:
            raise NotFoundError('User not found.')

        removed_from = user.enrolled_courses
        for course_id in removed_from:
            locks.enter_context(_course_lock(course_id))

        db.delete(user)
        db.commit()

    logger.info('User deleted: %s (removed from %d course rosters)', user_id, len(removed_from))
    return removed_from


def create_course(db: Session, fields: CreateCourseRequest | dict) -> Course:
    data = _parse(CreateCourseRequest, fields, 'Invalid course.')

    with _unit_of_work(db, 'creating a course'):
        if db.get(User, data.instructor_id) is None:
            raise RecordValidationError(
                'Invalid course.',
                errors=[{'field': 'instructor_id', 'message': 'Instructor not found.'}],
            )

        course = Course(**data.model_dump())
        db.add(course)
        db.commit()
        db.refresh(course)

    logger.info('Course created: %s', course.id)
    return course


def get_course(db: Session, course_id: int) -> Course:
    with _unit_of_work(db, 'loading a course'):
        course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError('Course not found.')
    return course


def list_courses(db: Session, status: str | None = None, category: str | None = None) -> list[Course]:
    with _unit_of_work(db, 'listing courses'):
        query = db.query(Course)
        if status:
            query = query.filter(Course.status == status.strip().lower())
        if category:
            query = query.filter(Course.category == category.strip())
        return query.order_by(Course.id.asc()).all()


def update_course(db: Session, course_id: int, fields: UpdateCourseRequest | dict) -> Course:
    data = _parse(UpdateCourseRequest, fields, 'Invalid course.')
    changes = data.model_dump(exclude_none=True)

    with _course_lock(course_id), _unit_of_work(db, 'updating a course'):
        course = _lock_course(db, course_id)
        if course is None:
            raise NotFoundError('Course not found.')

        start_date = changes.get('start_date', course.start_date)
        end_date = changes.get('end_date', course.end_date)
        if end_date < start_date:
            raise RecordValidationError(
                'Invalid course.',
                errors=[{'field': 'end_date', 'message': 'End date cannot be before start date.'}],
            )

        if 'capacity' in changes:
            enrolled_count = _roster_size(db, course_id)
            if changes['capacity'] < enrolled_count:
                raise RecordValidationError(
                    'Invalid course.',
                    errors=[{
                        'field': 'capacity',
                        'message': f'Capacity cannot be lower than the {enrolled_count} students already enrolled.',
                    }],
                )

        for field_name, value in changes.items():
            setattr(course, field_name, value)
        db.commit()
        db.refresh(course)

    logger.info('Course updated: %s (%s)', course_id, ', '.join(sorted(changes)) or 'no changes')
    return course


def enroll(db: Session, course_id: int, student_id: int) -> Course:
    with _user_lock(student_id), _course_lock(course_id), _unit_of_work(db, 'enrolling a student'):
        course = _lock_course(db, course_id)
        if course is None:
            raise NotFoundError('Course not found.')

        if _lock_student(db, student_id) is None:
            raise NotFoundError('Student not found.')

        if _find_enrollment(db, course_id, student_id) is not None:
            raise AlreadyEnrolledError()

        if _roster_size(db, course_id) >= course.capacity:
            raise CapacityExceededError(course.capacity)

        db.add(Enrollment(course_id=course_id, student_id=student_id))
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if _find_enrollment(db, course_id, student_id) is not None:
                raise AlreadyEnrolledError() from exc
            if db.get(User, student_id) is None:
                raise NotFoundError('Student not found.') from exc
            if db.get(Course, course_id) is None:
                raise NotFoundError('Course not found.') from exc
            raise

    logger.info('Student %s successfully enrolled in course %s', student_id, course_id)
    return course


def unenroll(db: Session, course_id: int, student_id: int) -> Course:
    with _user_lock(student_id), _course_lock(course_id), _unit_of_work(db, 'unenrolling a student'):
        course = _lock_course(db, course_id)
        if course is None:
            raise NotFoundError('Course not found.')

        enrollment = _find_enrollment(db, course_id, student_id)
        if enrollment is None:
            raise NotEnrolledError()

        db.delete(enrollment)
        db.commit()

    logger.info('Student %s successfully unenrolled from course %s', student_id, course_id)
    return course


def delete_course(db: Session, course_id: int) -> None:
    with _course_lock(course_id), _unit_of_work(db, 'deleting a course'):
        course = _lock_course(db, course_id)
        if course is None:
            raise NotFoundError('Course not found.')

        enrolled_count = _roster_size(db, course_id)
        if enrolled_count > 0:
            raise HasEnrollmentsError(enrolled_count)

        db.delete(course)
        db.commit()

    logger.info('Course deleted: %s', course_id)
