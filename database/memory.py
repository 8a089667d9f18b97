"""In-process implementations of the repository protocols.

Used by the test suite and by the API when ``STORAGE_BACKEND=memory``.
Behaviour matches the PostgreSQL repositories: per-key operations only,
date-descending listings and the same pagination tokens.
"""

import datetime as dt
from typing import Dict, List, Optional
from uuid import uuid4

from models import Course, GroupIntent, Round, RoundPage, User
from database.converters import decode_page_token, encode_page_token, hole_scores_to_json
from database.exceptions import NotFoundError


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class InMemoryRoundRepository:
    def __init__(self):
        self._rounds: Dict[str, Round] = {}

    async def get_round(self, round_id: str) -> Optional[Round]:
        round_ = self._rounds.get(round_id)
        return round_.model_copy(deep=True) if round_ else None

    async def create_round(self, round_: Round) -> Round:
        now = _now()
        stored = round_.model_copy(
            update={"id": round_.id or str(uuid4()), "created_at": now, "updated_at": now},
            deep=True,
        )
        self._rounds[stored.id] = stored
        return stored.model_copy(deep=True)

    async def update_round(self, round_id: str, **fields) -> Optional[Round]:
        current = self._rounds.get(round_id)
        if current is None:
            return None
        allowed = {"holes", "score_differential", "players", "group_id"}
        changes = {k: v for k, v in fields.items() if k in allowed}
        if "holes" in changes:
            changes["holes"] = hole_scores_to_json(changes["holes"])
        updated = current.revalidated(**changes, updated_at=_now())
        self._rounds[round_id] = updated
        return updated.model_copy(deep=True)

    async def delete_round(self, round_id: str) -> bool:
        return self._rounds.pop(round_id, None) is not None

    async def query_rounds_for_user(
        self,
        user_id: str,
        *,
        date: Optional[dt.date] = None,
        course_id: Optional[str] = None,
        limit: int = 20,
        next_token: Optional[str] = None,
    ) -> RoundPage:
        matches = [
            r for r in self._rounds.values()
            if r.user_id == user_id
            and (date is None or r.date == date)
            and (course_id is None or r.course_id == course_id)
        ]
        matches.sort(key=lambda r: (r.date, r.id), reverse=True)
        if next_token:
            after = decode_page_token(next_token)
            matches = [r for r in matches if (r.date, r.id) < after]

        page = [r.model_copy(deep=True) for r in matches[:limit]]
        token = encode_page_token(page[-1]) if len(matches) > limit else None
        return RoundPage(rounds=page, next_token=token)

    async def get_rounds_by_group(self, group_id: str) -> List[Round]:
        return sorted(
            (r.model_copy(deep=True) for r in self._rounds.values() if r.group_id == group_id),
            key=lambda r: r.user_id,
        )

    async def count_rounds_for_user(self, user_id: str) -> int:
        return sum(1 for r in self._rounds.values() if r.user_id == user_id)

    def all_rounds(self) -> List[Round]:
        return [r.model_copy(deep=True) for r in self._rounds.values()]


class InMemoryUserRepository:
    def __init__(self, users: Optional[List[User]] = None):
        self._users: Dict[str, User] = {}
        for user in users or []:
            self.add_user(user)

    def add_user(self, user: User) -> User:
        stored = user.model_copy(update={"id": user.id or str(uuid4())})
        self._users[stored.id] = stored
        return stored

    async def get_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def get_users(self, user_ids: List[str]) -> List[User]:
        return [self._users[u].model_copy() for u in user_ids if u in self._users]

    async def update_handicap(self, user_id: str, handicap: float) -> None:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        self._users[user_id] = user.model_copy(
            update={"handicap_index": handicap, "updated_at": _now()}
        )

    async def list_by_handicap(self, limit: int = 50) -> List[User]:
        ordered = sorted(
            self._users.values(),
            key=lambda u: (u.handicap_index, u.last_name or "", u.first_name or ""),
        )
        return [u.model_copy() for u in ordered[:limit]]

    async def search_users(self, query: str, limit: int = 20) -> List[User]:
        needle = query.strip().lower()

        def full_name(u: User) -> str:
            return " ".join(p for p in (u.first_name, u.last_name) if p).lower()

        matches = [
            u for u in self._users.values()
            if needle in full_name(u) or needle in (u.email or "").lower()
        ]
        matches.sort(key=lambda u: (not full_name(u).startswith(needle), full_name(u)))
        return [u.model_copy() for u in matches[:limit]]


class InMemoryCourseRepository:
    def __init__(self, courses: Optional[List[Course]] = None):
        self._courses: Dict[str, Course] = {}
        for course in courses or []:
            self.add_course(course)

    def add_course(self, course: Course) -> Course:
        stored = course.model_copy(update={"id": course.id or str(uuid4())})
        self._courses[stored.id] = stored
        return stored

    async def get_course(self, course_id: str) -> Optional[Course]:
        return self._courses.get(course_id)

    async def list_courses(self) -> List[Course]:
        return sorted(self._courses.values(), key=lambda c: c.name or "")

    async def search_courses(self, query: str, limit: int = 20) -> List[Course]:
        needle = query.strip().lower()
        matches = [
            c for c in self._courses.values()
            if needle in (c.name or "").lower() or needle in (c.location or "").lower()
        ]
        return sorted(matches, key=lambda c: c.name or "")[:limit]

    async def create_course(self, course: Course) -> Course:
        return self.add_course(course.model_copy(update={"id": None}))


class InMemoryGroupIntentRepository:
    def __init__(self):
        self._intents: Dict[str, GroupIntent] = {}

    async def create_intent(self, intent: GroupIntent) -> GroupIntent:
        stored = intent.model_copy(update={"created_at": intent.created_at or _now()})
        self._intents[stored.group_id] = stored
        return stored

    async def delete_intent(self, group_id: str) -> bool:
        return self._intents.pop(group_id, None) is not None

    async def list_stale_intents(self, older_than: dt.datetime) -> List[GroupIntent]:
        return sorted(
            (i for i in self._intents.values() if i.created_at < older_than),
            key=lambda i: i.created_at,
        )

    def pending(self) -> List[GroupIntent]:
        return list(self._intents.values())


class InMemoryDatabase:
    """Same repository attributes as DatabaseManager, held in process."""

    def __init__(self):
        self.rounds = InMemoryRoundRepository()
        self.users = InMemoryUserRepository()
        self.courses = InMemoryCourseRepository()
        self.intents = InMemoryGroupIntentRepository()

    async def initialize_schema(self) -> None:
        return None
