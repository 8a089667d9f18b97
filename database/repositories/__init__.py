from .course_repo import CourseRepositoryDB
from .group_intent_repo import GroupIntentRepositoryDB
from .user_repo import UserRepositoryDB
from .round_repo import RoundRepositoryDB

__all__ = [
    "CourseRepositoryDB",
    "GroupIntentRepositoryDB",
    "UserRepositoryDB",
    "RoundRepositoryDB",
]
