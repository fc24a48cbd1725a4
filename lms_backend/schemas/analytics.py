from pydantic import BaseModel


class RoleCount(BaseModel):
    role: str
    count: int


class UserAnalyticsResponse(BaseModel):
    total_users: int
    role_distribution: list[RoleCount]


class CategoryStats(BaseModel):
    category: str
    count: int
    total_enrolled: int
    average_capacity: float
    enrollment_rate: float


class CourseAnalyticsResponse(BaseModel):
    total_courses: int
    category_distribution: list[CategoryStats]
