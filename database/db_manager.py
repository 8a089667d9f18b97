from pathlib import Path
from typing import Optional

import asyncpg

from database.exceptions import DatabaseError
from database.repositories import (
    CourseRepositoryDB,
    GroupIntentRepositoryDB,
    RoundRepositoryDB,
    UserRepositoryDB,
)


class DatabaseManager:
    """
    Bundles the PostgreSQL repositories behind one object.

    Notes:
    - Repositories use raw SQL (no ORM) to keep behavior explicit.
    - Each repository call is atomic for a single row only.
    """

    def __init__(self, pool: asyncpg.Pool, schema_path: Optional[str] = None) -> None:
        self.pool = pool
        self.schema_path = Path(
            schema_path or Path(__file__).with_name("schema.sql")
        ).resolve()
        self.rounds = RoundRepositoryDB(pool)
        self.users = UserRepositoryDB(pool)
        self.courses = CourseRepositoryDB(pool)
        self.intents = GroupIntentRepositoryDB(pool)

    async def initialize_schema(self) -> None:
        """Create schemas/tables defined in `database/schema.sql`."""
        if not self.schema_path.exists():
            raise DatabaseError(f"Schema file not found: {self.schema_path}")

        sql_text = self.schema_path.read_text(encoding="utf-8")
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(sql_text)
