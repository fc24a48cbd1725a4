"""Enrollment model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import relationship

from lms_backend.database import Base


class Enrollment(Base):
    """Links one student to one course; both sides of the roster read from here."""
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("course_id", "student_id", name="uq_enrollments_course_student"),
    )

    course = relationship("Course", back_populates="enrollments")
    student = relationship("User", back_populates="enrollments")
