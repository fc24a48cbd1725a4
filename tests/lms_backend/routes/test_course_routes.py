from datetime import date

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from lms_backend.routes import course_routes
from lms_backend.schemas.course import CreateCourseRequest, UpdateCourseRequest


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('lms_backend.routes.course_routes.ensure_database_ready', lambda: None)


def test_create_course_request_normalizes_fields() -> None:
    request = CreateCourseRequest(
        title='  Brand Strategy ',
        description=' Positioning. ',
        category='marketing',
        instructor_id=1,
        capacity=30,
        start_date=date(2026, 2, 2),
        end_date=date(2026, 4, 24),
        status=' PUBLISHED ',
    )

    assert request.title == 'Brand Strategy'
    assert request.description == 'Positioning.'
    assert request.category == 'Marketing'
    assert request.status == 'published'


def test_create_course_request_rejects_zero_capacity() -> None:
    with pytest.raises(ValidationError):
        CreateCourseRequest(
            title='Empty',
            description='No seats.',
            category='Other',
            instructor_id=1,
            capacity=0,
            start_date=date(2026, 2, 2),
            end_date=date(2026, 4, 24),
        )


def test_create_course_route_returns_course(lms_db, make_user) -> None:
    instructor = make_user(role='instructor')
    request = CreateCourseRequest(
        title='UX Basics',
        description='Wireframes.',
        category='Design',
        instructor_id=instructor.id,
        capacity=12,
        start_date=date(2026, 2, 2),
        end_date=date(2026, 4, 24),
    )

    course = course_routes.create_course(data=request, db=lms_db, _=instructor)

    assert course.id is not None
    assert course.instructor_id == instructor.id
    assert course.enrolled_students == []


def test_create_course_route_maps_missing_instructor_to_422(lms_db, make_user) -> None:
    admin = make_user(role='admin')
    request = CreateCourseRequest(
        title='UX Basics',
        description='Wireframes.',
        category='Design',
        instructor_id=999,
        capacity=12,
        start_date=date(2026, 2, 2),
        end_date=date(2026, 4, 24),
    )

    with pytest.raises(HTTPException) as exception_info:
        course_routes.create_course(data=request, db=lms_db, _=admin)

    assert exception_info.value.status_code == 422
    assert exception_info.value.detail['errors'] == [{'field': 'instructor_id', 'message': 'Instructor not found.'}]


def test_get_course_returns_404_when_missing(lms_db, make_user) -> None:
    with pytest.raises(HTTPException) as exception_info:
        course_routes.get_course(course_id=999, db=lms_db, _=make_user())

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Course not found.'


def test_enroll_student_reports_roster_size(lms_db, make_user, make_course) -> None:
    admin = make_user(role='admin')
    course = make_course(capacity=2)
    student = make_user()

    response = course_routes.enroll_student(course_id=course.id, student_id=student.id, db=lms_db, _=admin)

    assert response.message == 'Student enrolled successfully'
    assert response.enrolled_count == 1
    assert response.capacity == 2


def test_enroll_student_returns_409_when_already_enrolled(lms_db, make_user, make_course) -> None:
    admin = make_user(role='admin')
    course = make_course()
    student = make_user()
    course_routes.enroll_student(course_id=course.id, student_id=student.id, db=lms_db, _=admin)

    with pytest.raises(HTTPException) as exception_info:
        course_routes.enroll_student(course_id=course.id, student_id=student.id, db=lms_db, _=admin)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'Student is already enrolled in this course.'


def test_enroll_student_returns_409_when_course_is_full(lms_db, make_user, make_course) -> None:
    admin = make_user(role='admin')
    course = make_course(capacity=1)
    course_routes.enroll_student(course_id=course.id, student_id=make_user().id, db=lms_db, _=admin)

    with pytest.raises(HTTPException) as exception_info:
        course_routes.enroll_student(course_id=course.id, student_id=make_user().id, db=lms_db, _=admin)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == {'error': 'Course has reached maximum capacity.', 'capacity': 1}


def test_unenroll_student_returns_409_when_not_enrolled(lms_db, make_user, make_course) -> None:
    admin = make_user(role='admin')
    course = make_course()

    with pytest.raises(HTTPException) as exception_info:
        course_routes.unenroll_student(course_id=course.id, student_id=make_user().id, db=lms_db, _=admin)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'Student is not enrolled in this course.'


def test_unenroll_student_empties_roster(lms_db, make_user, make_course) -> None:
    admin = make_user(role='admin')
    course = make_course()
    student = make_user()
    course_routes.enroll_student(course_id=course.id, student_id=student.id, db=lms_db, _=admin)

    response = course_routes.unenroll_student(course_id=course.id, student_id=student.id, db=lms_db, _=admin)

    assert response.message == 'Student unenrolled successfully'
    assert response.enrolled_count == 0


def test_delete_course_returns_enrolled_count_when_blocked(lms_db, make_user, make_course) -> None:
    admin = make_user(role='admin')
    course = make_course()
    course_routes.enroll_student(course_id=course.id, student_id=make_user().id, db=lms_db, _=admin)

    with pytest.raises(HTTPException) as exception_info:
        course_routes.delete_course(course_id=course.id, db=lms_db, _=admin)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == {
        'error': 'Cannot delete course with enrolled students.',
        'enrolled_count': 1,
    }


def test_update_course_route_returns_422_for_capacity_below_roster(lms_db, make_user, make_course) -> None:
    admin = make_user(role='admin')
    course = make_course(capacity=2)
    for _ in range(2):
        course_routes.enroll_student(course_id=course.id, student_id=make_user().id, db=lms_db, _=admin)

    with pytest.raises(HTTPException) as exception_info:
        course_routes.update_course(course_id=course.id, data=UpdateCourseRequest(capacity=1), db=lms_db, _=admin)

    assert exception_info.value.status_code == 422


def test_list_courses_route_filters_by_status(lms_db, make_user, make_course) -> None:
    make_course()
    published = make_course(status='published')

    courses = course_routes.list_courses(course_status='published', category=None, db=lms_db, _=make_user())

    assert [course.id for course in courses] == [published.id]
