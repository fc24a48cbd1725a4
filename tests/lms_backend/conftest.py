import os
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from lms_backend.database import Base  # noqa: E402
from lms_backend.models import course, enrollment, user  # noqa: E402,F401
from lms_backend.services import enrollment as enrollment_service  # noqa: E402


@pytest.fixture
def lms_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def make_user(lms_db):
    counter = {'next': 0}

    def _make_user(role: str = 'student', email: str | None = None, name: str | None = None):
        counter['next'] += 1
        return enrollment_service.create_user(
            lms_db,
            {
                'email': email or f'{role}{counter["next"]}@example.edu',
                'name': name or f'{role.title()} {counter["next"]}',
                'role': role,
            },
        )

    return _make_user


@pytest.fixture
def make_course(lms_db, make_user):
    def _make_course(capacity: int = 10, category: str = 'Programming', instructor=None, **overrides):
        instructor = instructor or make_user(role='instructor')
        fields = {
            'title': 'Intro to Python',
            'description': 'Variables, loops and functions.',
            'category': category,
            'instructor_id': instructor.id,
            'capacity': capacity,
            'start_date': date(2026, 1, 5),
            'end_date': date(2026, 3, 27),
        }
        fields.update(overrides)
        return enrollment_service.create_course(lms_db, fields)

    return _make_course
