from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from lms_backend.auth.dependencies import require_role
from lms_backend.core.errors import LMSError
from lms_backend.database import get_db
from lms_backend.models.user import User
from lms_backend.routes.common import ALL_ROLES, STAFF_ROLES, as_http_exception, ensure_database_ready
from lms_backend.schemas.course import (
    CourseResponse,
    CreateCourseRequest,
    EnrollmentResponse,
    UpdateCourseRequest,
)
from lms_backend.services import enrollment as enrollment_service

router = APIRouter(tags=['courses'])


@router.post('', response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    data: CreateCourseRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_role(*STAFF_ROLES)),
):
    ensure_database_ready()

    try:
        return enrollment_service.create_course(db, data)
    except LMSError as exc:
        raise as_http_exception(exc) from exc


@router.get('', response_model=list[CourseResponse])
def list_courses(
    course_status: str | None = Query(default=None, alias='status'),
    category: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_role(*ALL_ROLES)),
):
    ensure_database_ready()

    try:
        return enrollment_service.list_courses(db, status=course_status, category=category)
    except LMSError as exc:
        raise as_http_exception(exc) from exc


@router.get('/{course_id}', response_model=CourseResponse)
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_role(*ALL_ROLES)),
):
    ensure_database_ready()

    try:
        return enrollment_service.get_course(db, course_id)
    except LMSError as exc:
        raise as_http_exception(exc) from exc


@router.patch('/{course_id}', response_model=CourseResponse)
def update_course(
    course_id: int,
    data: UpdateCourseRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_role(*STAFF_ROLES)),
):
    ensure_database_ready()

    try:
        return enrollment_service.update_course(db, course_id, data)
    except LMSError as exc:
        raise as_http_exception(exc) from exc


@router.delete('/{course_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_role('admin')),
):
    ensure_database_ready()

    try:
        enrollment_service.delete_course(db, course_id)
    except LMSError as exc:
        raise as_http_exception(exc) from exc


@router.post('/{course_id}/enroll/{student_id}', response_model=EnrollmentResponse)
def enroll_student(
    course_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_role(*STAFF_ROLES)),
):
    ensure_database_ready()

    try:
        course = enrollment_service.enroll(db, course_id, student_id)
    except LMSError as exc:
        raise as_http_exception(exc) from exc

    return EnrollmentResponse(
        message='Student enrolled successfully',
        course_id=course_id,
        student_id=student_id,
        enrolled_count=len(course.enrolled_students),
        capacity=course.capacity,
    )


@router.delete('/{course_id}/enroll/{student_id}', response_model=EnrollmentResponse)
def unenroll_student(
    course_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_role(*STAFF_ROLES)),
):
    ensure_database_ready()

    try:
        course = enrollment_service.unenroll(db, course_id, student_id)
    except LMSError as exc:
        raise as_http_exception(exc) from exc

    return EnrollmentResponse(
        message='Student unenrolled successfully',
        course_id=course_id,
        student_id=student_id,
        enrolled_count=len(course.enrolled_students),
        capacity=course.capacity,
    )
