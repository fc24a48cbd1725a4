"""Course model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from lms_backend.database import Base

CATEGORIES = ('Programming', 'Design', 'Business', 'Marketing', 'Other')
STATUSES = ('draft', 'published', 'archived')
DEFAULT_STATUS = 'draft'


class Course(Base):
    """Represents a course and its enrollment capacity."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False)
    instructor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    capacity = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default=DEFAULT_STATUS)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    instructor = relationship("User", back_populates="taught_courses")
    enrollments = relationship(
        "Enrollment",
        back_populates="course",
        cascade="all, delete-orphan",
    )

    @property
    def enrolled_students(self) -> list[int]:
        return sorted(enrollment.student_id for enrollment in self.enrollments)
