"""Print a bearer access token for an existing user to stdout.

Usage:
    python -m lms_backend.issue_token user@example.edu
"""
import sys

from sqlalchemy import func
from sqlalchemy.orm import Session

from lms_backend.auth.jwt_handler import create_access_token
from lms_backend.database import SessionLocal
from lms_backend.models import course, enrollment  # noqa: F401
from lms_backend.models.user import User


def issue_token(db: Session, email: str) -> str | None:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if user is None:
        return None

    user.last_login = func.now()
    db.commit()
    return create_access_token(subject=user.email, role=user.role)


def main() -> None:
    if len(sys.argv) != 2:
        print(__doc__.strip(), file=sys.stderr)
        sys.exit(2)

    db = SessionLocal()
    try:
        token = issue_token(db, sys.argv[1])
    finally:
        db.close()

    if token is None:
        print(f"No user registered with email {sys.argv[1]!r}", file=sys.stderr)
        sys.exit(1)
    print(token)


if __name__ == "__main__":
    main()
