"""CRUD operations for the users.users table."""

import asyncpg
from typing import List, Optional
from uuid import UUID

from models import User
from database.converters import user_from_row
from database.exceptions import DuplicateError, NotFoundError


class UserRepositoryDB:
    """Async CRUD for users."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Read
    # ================================================================

    async def get_user(self, user_id: str) -> Optional[User]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM users.users WHERE id = $1", UUID(user_id)
            )
            return user_from_row(row) if row else None

    async def get_users(self, user_ids: List[str]) -> List[User]:
        """Batch lookup by id. Missing ids are left out."""
        if not user_ids:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM users.users WHERE id = ANY($1::uuid[])",
                [UUID(u) for u in user_ids],
            )
            return [user_from_row(r) for r in rows]

    async def list_by_handicap(self, limit: int = 50) -> List[User]:
        """Users ordered by handicap, lowest first."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM users.users
                   ORDER BY handicap_index ASC, last_name, first_name
                   LIMIT $1""",
                limit,
            )
            return [user_from_row(r) for r in rows]

    async def search_users(self, query: str, limit: int = 20) -> List[User]:
        """Find co-players by name or email, names starting with ``query`` first."""
        pattern = query.strip().lower()
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT *, lower(concat_ws(' ', first_name, last_name)) AS full_name
                   FROM users.users
                   WHERE lower(concat_ws(' ', first_name, last_name)) LIKE '%' || $1 || '%'
                      OR lower(email) LIKE '%' || $1 || '%'
                   ORDER BY (lower(concat_ws(' ', first_name, last_name)) LIKE $1 || '%') DESC,
                            full_name
                   LIMIT $2""",
                pattern, limit,
            )
            return [user_from_row(r) for r in rows]

    # ================================================================
    # Create
    # ================================================================

    async def create_user(self, user: User) -> User:
        """Create a new user. Returns User with DB-generated id."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """INSERT INTO users.users (first_name, last_name, email, handicap_index)
                       VALUES ($1, $2, $3, $4) RETURNING *""",
                    user.first_name, user.last_name, user.email, user.handicap_index,
                )
                return user_from_row(row)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(f"Email already in use: {e}") from e

    # ================================================================
    # Update
    # ================================================================

    async def update_handicap(self, user_id: str, handicap: float) -> None:
        """Update handicap and set updated_at to NOW()."""
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                """UPDATE users.users
                   SET handicap_index = $2, updated_at = NOW()
                   WHERE id = $1""",
                UUID(user_id), handicap,
            )
            if result == "UPDATE 0":
                raise NotFoundError(f"User {user_id} not found")
