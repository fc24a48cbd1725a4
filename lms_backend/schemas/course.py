from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from lms_backend.models.course import CATEGORIES, DEFAULT_STATUS, STATUSES

MAX_TITLE_LENGTH = 200


def normalize_category(value: str) -> str:
    canonical = {category.lower(): category for category in CATEGORIES}
    normalized = value.strip().lower()
    if normalized not in canonical:
        raise ValueError(f'Category must be one of: {", ".join(CATEGORIES)}.')
    return canonical[normalized]


def normalize_status(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in STATUSES:
        raise ValueError(f'Status must be one of: {", ".join(STATUSES)}.')
    return normalized


def normalize_title(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Title is required.')
    if len(normalized) > MAX_TITLE_LENGTH:
        raise ValueError(f'Title must be {MAX_TITLE_LENGTH} characters or fewer.')
    return normalized


def normalize_description(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Description is required.')
    return normalized


class CreateCourseRequest(BaseModel):
    title: str
    description: str
    category: str
    instructor_id: int
    capacity: int = Field(ge=1)
    start_date: date
    end_date: date
    status: str = DEFAULT_STATUS

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        return normalize_title(value)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str) -> str:
        return normalize_description(value)

    @field_validator('category')
    @classmethod
    def validate_category(cls, value: str) -> str:
        return normalize_category(value)

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        return normalize_status(value)

    @model_validator(mode='after')
    def validate_date_range(self) -> 'CreateCourseRequest':
        if self.end_date < self.start_date:
            raise ValueError('End date cannot be before start date.')
        return self


class UpdateCourseRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    category: str | None = None
    capacity: int | None = Field(default=None, ge=1)
    start_date: date | None = None
    end_date: date | None = None
    status: str | None = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str | None) -> str | None:
        return None if value is None else normalize_title(value)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return None if value is None else normalize_description(value)

    @field_validator('category')
    @classmethod
    def validate_category(cls, value: str | None) -> str | None:
        return None if value is None else normalize_category(value)

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        return None if value is None else normalize_status(value)


class CourseResponse(BaseModel):
    id: int
    title: str
    description: str
    category: str
    instructor_id: int | None = None
    capacity: int
    enrolled_students: list[int]
    start_date: date
    end_date: date
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class EnrollmentResponse(BaseModel):
    message: str
    course_id: int
    student_id: int
    enrolled_count: int
    capacity: int
