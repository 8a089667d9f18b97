"""Pending round-group markers (users.round_group_intents)."""

import datetime as dt
import asyncpg
from typing import List
from uuid import UUID

from models import GroupIntent
from database.converters import group_intent_from_row


class GroupIntentRepositoryDB:
    """Write-ahead markers for multi-round writes."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def create_intent(self, intent: GroupIntent) -> GroupIntent:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """INSERT INTO users.round_group_intents
                   (group_id, requested_by, operation, player_ids)
                   VALUES ($1, $2, $3, $4) RETURNING *""",
                UUID(intent.group_id), UUID(intent.requested_by),
                intent.operation, [UUID(p) for p in intent.player_ids],
            )
            return group_intent_from_row(row)

    async def delete_intent(self, group_id: str) -> bool:
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM users.round_group_intents WHERE group_id = $1",
                UUID(group_id),
            )
            return result == "DELETE 1"

    async def list_stale_intents(self, older_than: dt.datetime) -> List[GroupIntent]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT * FROM users.round_group_intents
                   WHERE created_at < $1 ORDER BY created_at""",
                older_than,
            )
            return [group_intent_from_row(r) for r in rows]
