import sqlite3
from threading import Lock

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from lms_backend.core import config


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores REFERENCES and ON DELETE unless enabled per connection.
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(
    config.DATABASE_URL,
    echo=config.DATABASE_ECHO,
    connect_args=_connect_args(config.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_lms_schema_checked = False

INDEX_STATEMENTS = {
    'enrollments': [
        'CREATE INDEX IF NOT EXISTS idx_enrollments_student ON enrollments(student_id)',
        'CREATE INDEX IF NOT EXISTS idx_enrollments_course ON enrollments(course_id)',
    ],
    'courses': [
        'CREATE INDEX IF NOT EXISTS idx_courses_category ON courses(category)',
        'CREATE INDEX IF NOT EXISTS idx_courses_status ON courses(status)',
    ],
    'users': [
        'CREATE INDEX IF NOT EXISTS idx_users_role ON users(role)',
    ],
}


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_lms_schema(bind=None) -> None:
    global _lms_schema_checked

    if _lms_schema_checked:
        return

    with _schema_lock:
        if _lms_schema_checked:
            return

        bind = bind or engine
        existing_tables = set(inspect(bind).get_table_names())

        with bind.begin() as connection:
            for table_name, statements in INDEX_STATEMENTS.items():
                if table_name not in existing_tables:
                    continue
                for statement in statements:
                    connection.execute(text(statement))

        _lms_schema_checked = True
