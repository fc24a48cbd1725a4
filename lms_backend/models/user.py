"""User model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from lms_backend.database import Base

ROLES = ('student', 'instructor', 'admin')
DEFAULT_ROLE = 'student'


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=DEFAULT_ROLE)  # student/instructor/admin
    created_at = Column(DateTime, server_default=func.now())
    last_login = Column(DateTime, server_default=func.now())

    enrollments = relationship(
        "Enrollment",
        back_populates="student",
        cascade="all, delete-orphan",
    )
    taught_courses = relationship("Course", back_populates="instructor")

    @property
    def enrolled_courses(self) -> list[int]:
        return sorted(enrollment.course_id for enrollment in self.enrollments)
