from database.connection import DatabasePool, db
from database.db_manager import DatabaseManager
from database.memory import InMemoryDatabase
from database.repositories import (
    CourseRepositoryDB,
    GroupIntentRepositoryDB,
    RoundRepositoryDB,
    UserRepositoryDB,
)
from database.exceptions import (
    DatabaseError,
    DuplicateError,
    IntegrityError,
    InvalidPageToken,
    NotFoundError,
)

__all__ = [
    "DatabasePool",
    "db",
    "DatabaseManager",
    "InMemoryDatabase",
    "CourseRepositoryDB",
    "GroupIntentRepositoryDB",
    "UserRepositoryDB",
    "RoundRepositoryDB",
    "DatabaseError",
    "NotFoundError",
    "DuplicateError",
    "IntegrityError",
    "InvalidPageToken",
]
