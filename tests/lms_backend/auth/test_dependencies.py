import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from lms_backend.auth import jwt_handler
from lms_backend.auth.dependencies import get_current_user, require_role
from lms_backend.core import config


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_access_token_round_trip_carries_subject_and_role() -> None:
    token = jwt_handler.create_access_token(subject='ada@example.edu', role='admin')

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == 'ada@example.edu'
    assert payload['role'] == 'admin'


def test_expired_token_fails_to_decode() -> None:
    token = jwt_handler.create_access_token(subject='ada@example.edu', role='admin', expires_minutes=-1)

    with pytest.raises(jwt.ExpiredSignatureError):
        jwt_handler.decode_access_token(token)


def test_get_current_user_resolves_stored_user(lms_db, make_user) -> None:
    student = make_user(email='ada@example.edu')
    token = jwt_handler.create_access_token(subject='ada@example.edu', role='student')

    assert get_current_user(credentials=_credentials(token), db=lms_db).id == student.id


def test_get_current_user_rejects_token_with_wrong_signature(lms_db) -> None:
    token = jwt.encode({'sub': 'ada@example.edu'}, 'not-the-secret', algorithm=config.JWT_ALGORITHM)

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=lms_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_unknown_user(lms_db) -> None:
    token = jwt_handler.create_access_token(subject='ghost@example.edu', role='admin')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=lms_db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'User not found'


def test_require_role_uses_stored_role(make_user) -> None:
    check_admin = require_role('admin')
    admin, student = make_user(role='admin'), make_user(role='student')

    assert check_admin(current_user=admin) is admin
    with pytest.raises(HTTPException) as exception_info:
        check_admin(current_user=student)

    assert exception_info.value.status_code == 403
