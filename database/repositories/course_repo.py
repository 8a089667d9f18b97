"""Read/create operations for courses.courses."""

import asyncpg
from typing import List, Optional
from uuid import UUID

from models import Course
from database.converters import course_from_row, course_to_row
from database.exceptions import DuplicateError


class CourseRepositoryDB:
    """Async course lookups. Ratings are stored per tee as JSONB."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def get_course(self, course_id: str) -> Optional[Course]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM courses.courses WHERE id = $1",
                UUID(course_id),
            )
            return course_from_row(row) if row else None

    async def list_courses(self) -> List[Course]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch("SELECT * FROM courses.courses ORDER BY name")
            return [course_from_row(r) for r in rows]

    async def search_courses(self, query: str, limit: int = 20) -> List[Course]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM courses.courses
                   WHERE name ILIKE $1 OR location ILIKE $1
                   ORDER BY name
                   LIMIT $2""",
                f"%{query.strip()}%", limit,
            )
            return [course_from_row(r) for r in rows]

    async def create_course(self, course: Course) -> Course:
        data = course_to_row(course)
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """INSERT INTO courses.courses (name, location, course_rating, slope_rating)
                       VALUES ($1, $2, $3, $4) RETURNING *""",
                    data["name"], data["location"],
                    data["course_rating"], data["slope_rating"],
                )
                return course_from_row(row)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(f"Course already exists: {e}") from e
