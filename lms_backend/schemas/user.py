from datetime import datetime

from pydantic import BaseModel, field_validator

from lms_backend.models.user import DEFAULT_ROLE, ROLES


def normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    local_part, _, domain = normalized.partition('@')
    if not local_part or '.' not in domain:
        raise ValueError('A valid email address is required.')
    return normalized


class CreateUserRequest(BaseModel):
    email: str
    name: str
    role: str = DEFAULT_ROLE

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in ROLES:
            raise ValueError('Invalid role.')
        return normalized


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    enrolled_courses: list[int]
    created_at: datetime | None = None
    last_login: datetime | None = None

    class Config:
        from_attributes = True
