from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from lms_backend.auth.dependencies import require_role
from lms_backend.core.errors import LMSError
from lms_backend.database import get_db
from lms_backend.models.user import User
from lms_backend.routes.common import ALL_ROLES, as_http_exception, ensure_database_ready
from lms_backend.schemas.user import CreateUserRequest, UserResponse
from lms_backend.services import enrollment as enrollment_service

router = APIRouter(tags=['users'])


@router.post('', response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register_user(data: CreateUserRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return enrollment_service.create_user(db, data)
    except LMSError as exc:
        raise as_http_exception(exc) from exc


@router.get('', response_model=list[UserResponse])
def list_users(
    role: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_role('admin')),
):
    ensure_database_ready()

    try:
        return enrollment_service.list_users(db, role=role)
    except LMSError as exc:
        raise as_http_exception(exc) from exc


@router.get('/{user_id}', response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(*ALL_ROLES)),
):
    if current_user.role == 'student' and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Students can only view their own profile.',
        )

    ensure_database_ready()

    try:
        return enrollment_service.get_user(db, user_id)
    except LMSError as exc:
        raise as_http_exception(exc) from exc


@router.delete('/{user_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_role('admin')),
):
    ensure_database_ready()

    try:
        enrollment_service.delete_user(db, user_id)
    except LMSError as exc:
        raise as_http_exception(exc) from exc
