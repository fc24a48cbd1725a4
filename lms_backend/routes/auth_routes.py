from fastapi import APIRouter, Depends

from lms_backend.auth.dependencies import get_current_user
from lms_backend.models.user import User
from lms_backend.schemas.user import UserResponse

router = APIRouter(tags=['auth'])


@router.get('/me', response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
