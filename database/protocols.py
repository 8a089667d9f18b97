"""Storage interfaces the handicap and round-group services depend on.

Each store offers atomic single-key operations only; nothing here spans
several records in one transaction. ``database.repositories`` implements these
on PostgreSQL and ``database.memory`` keeps everything in process.
"""

import datetime as dt
from typing import List, Optional, Protocol

from models import Course, GroupIntent, Round, RoundPage, User


class RoundRepository(Protocol):
    """Keyed store of per-player rounds."""

    async def get_round(self, round_id: str) -> Optional[Round]:
        ...

    async def create_round(self, round_: Round) -> Round:
        """Persist a new round. Assigns id and timestamps when missing."""
        ...

    async def update_round(self, round_id: str, **fields) -> Optional[Round]:
        """Update holes, score_differential, players or group_id.

        Totals are recomputed from ``holes`` when they change. Returns None
        when the round does not exist.
        """
        ...

    async def delete_round(self, round_id: str) -> bool:
        ...

    async def query_rounds_for_user(
        self,
        user_id: str,
        *,
        date: Optional[dt.date] = None,
        course_id: Optional[str] = None,
        limit: int = 20,
        next_token: Optional[str] = None,
    ) -> RoundPage:
        """A user's rounds, newest date first, optionally filtered by date and course."""
        ...

    async def get_rounds_by_group(self, group_id: str) -> List[Round]:
        ...

    async def count_rounds_for_user(self, user_id: str) -> int:
        ...


class UserRepository(Protocol):

    async def get_user(self, user_id: str) -> Optional[User]:
        ...

    async def get_users(self, user_ids: List[str]) -> List[User]:
        """Batch lookup; unknown ids are simply absent from the result."""
        ...

    async def update_handicap(self, user_id: str, handicap: float) -> None:
        """Store a new handicap index and stamp updated_at. Raises NotFoundError."""
        ...

    async def list_by_handicap(self, limit: int = 50) -> List[User]:
        ...

    async def search_users(self, query: str, limit: int = 20) -> List[User]:
        """Case-insensitive match on full name or email; names starting with
        ``query`` come first."""
        ...


class CourseRepository(Protocol):
    """Interface for course lookups."""

    async def get_course(self, course_id: str) -> Optional[Course]:
        ...

    async def list_courses(self) -> List[Course]:
        ...

    async def search_courses(self, query: str, limit: int = 20) -> List[Course]:
        """Case-insensitive match on name or location."""
        ...

    async def create_course(self, course: Course) -> Course:
        ...


class GroupIntentRepository(Protocol):
    """Pending-group markers written ahead of multi-round writes."""

    async def create_intent(self, intent: GroupIntent) -> GroupIntent:
        ...

    async def delete_intent(self, group_id: str) -> bool:
        ...

    async def list_stale_intents(self, older_than: dt.datetime) -> List[GroupIntent]:
        ...
