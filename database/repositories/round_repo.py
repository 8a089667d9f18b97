"""CRUD operations for users.rounds.

Every method touches a single round row; there is no multi-round transaction.
"""

import datetime as dt
from typing import List, Optional
from uuid import UUID, uuid4

import asyncpg

from models import Round, RoundPage
from database.converters import (
    decode_page_token,
    encode_page_token,
    hole_scores_to_json,
    round_from_row,
    round_to_row,
)
from database.exceptions import DuplicateError, IntegrityError


class RoundRepositoryDB:
    """Async CRUD for per-player rounds."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Read
    # ================================================================

    async def get_round(self, round_id: str) -> Optional[Round]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM users.rounds WHERE id = $1", UUID(round_id)
            )
            return round_from_row(row) if row else None

    async def query_rounds_for_user(
        self,
        user_id: str,
        *,
        date: Optional[dt.date] = None,
        course_id: Optional[str] = None,
        limit: int = 20,
        next_token: Optional[str] = None,
    ) -> RoundPage:
        """Get a user's rounds ordered by date DESC, one page at a time."""
        conditions = ["user_id = $1"]
        values: list = [UUID(user_id)]

        if date is not None:
            values.append(date)
            conditions.append(f"round_date = ${len(values)}")
        if course_id is not None:
            values.append(UUID(course_id))
            conditions.append(f"course_id = ${len(values)}")
        if next_token:
            after_date, after_id = decode_page_token(next_token)
            values.extend([after_date, UUID(after_id)])
            conditions.append(
                f"(round_date, id) < (${len(values) - 1}, ${len(values)})"
            )

        # Fetch one extra row to know whether another page exists
        values.append(limit + 1)
        query = (
            "SELECT * FROM users.rounds WHERE "
            + " AND ".join(conditions)
            + f" ORDER BY round_date DESC, id DESC LIMIT ${len(values)}"
        )

        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, *values)

        rounds = [round_from_row(r) for r in rows[:limit]]
        token = encode_page_token(rounds[-1]) if len(rows) > limit else None
        return RoundPage(rounds=rounds, next_token=token)

    async def get_rounds_by_group(self, group_id: str) -> List[Round]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM users.rounds WHERE group_id = $1 ORDER BY user_id",
                UUID(group_id),
            )
            return [round_from_row(r) for r in rows]

    async def count_rounds_for_user(self, user_id: str) -> int:
        async with self._pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT COUNT(*) FROM users.rounds WHERE user_id = $1", UUID(user_id)
            )

    # ================================================================
    # Create
    # ================================================================

    async def create_round(self, round_: Round) -> Round:
        """Insert one round. Totals are taken from the model, never from input."""
        row_data = round_to_row(round_)
        round_id = UUID(round_.id) if round_.id else uuid4()
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """INSERT INTO users.rounds
                       (id, user_id, course_id, course_name, tee_color, number_of_holes,
                        round_date, holes, total_score, total_par, score_differential,
                        players, group_id)
                       VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
                       RETURNING *""",
                    round_id,
                    row_data["user_id"], row_data["course_id"], row_data["course_name"],
                    row_data["tee_color"], row_data["number_of_holes"],
                    row_data["round_date"], row_data["holes"],
                    row_data["total_score"], row_data["total_par"],
                    row_data["score_differential"],
                    row_data["players"], row_data["group_id"],
                )
                return round_from_row(row)
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(str(e)) from e
        except asyncpg.ForeignKeyViolationError as e:
            raise IntegrityError(str(e)) from e

    # ================================================================
    # Update
    # ================================================================

    async def update_round(self, round_id: str, **fields) -> Optional[Round]:
        """Update round-level fields; holes also rewrite total_score/total_par."""
        allowed = {"holes", "score_differential", "players", "group_id"}
        updates = {k: v for k, v in fields.items() if k in allowed}
        if not updates:
            return await self.get_round(round_id)

        if "holes" in updates:
            holes = hole_scores_to_json(updates["holes"])
            updates["holes"] = holes
            updates["total_score"] = sum(h["strokes"] for h in holes)
            updates["total_par"] = sum(h["par"] for h in holes)
        if "players" in updates:
            updates["players"] = [UUID(p) for p in updates["players"]]
        if "group_id" in updates and updates["group_id"] is not None:
            updates["group_id"] = UUID(updates["group_id"])

        set_clause = ", ".join(f"{k} = ${i+2}" for i, k in enumerate(updates))
        values = [UUID(round_id)] + list(updates.values())

        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""UPDATE users.rounds SET {set_clause}, updated_at = NOW()
                    WHERE id = $1 RETURNING *""",
                *values,
            )
            return round_from_row(row) if row else None

    # ================================================================
    # Delete
    # ================================================================

    async def delete_round(self, round_id: str) -> bool:
        """Delete one round. Returns True if deleted."""
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM users.rounds WHERE id = $1", UUID(round_id)
            )
            return result == "DELETE 1"
