import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from database.protocols import RoundRepository, UserRepository
from handicap.index import HANDICAP_WINDOW, handicap_index

logger = logging.getLogger(__name__)


class HandicapUpdater:
    """Derives a user's handicap index from their most recent rounds and stores it.

    The handicap is a cache over round data. ``recompute_handicap`` is what round
    writes call afterwards: it logs and swallows failures so a stale handicap
    never undoes a saved round. ``update_handicap`` raises, for callers that
    explicitly ask for a recalculation.
    """

    def __init__(
        self,
        rounds: RoundRepository,
        users: UserRepository,
        window: int = HANDICAP_WINDOW,
    ):
        self._rounds = rounds
        self._users = users
        self._window = window

    async def recent_differentials(self, user_id: str) -> List[float]:
        page = await self._rounds.query_rounds_for_user(user_id, limit=self._window)
        return [r.score_differential for r in page.rounds if r.score_differential is not None]

    async def update_handicap(self, user_id: str) -> float:
        """Recalculate and persist. Raises NotFoundError for unknown users."""
        differentials = await self.recent_differentials(user_id)
        handicap = handicap_index(differentials)
        await self._users.update_handicap(user_id, handicap)
        logger.info(
            "Updated handicap for user %s: %.1f (from %d rounds)",
            user_id, handicap, len(differentials),
        )
        return handicap

    async def recompute_handicap(self, user_id: str) -> Optional[float]:
        """Best-effort update. Returns None when the recompute failed."""
        try:
            return await self.update_handicap(user_id)
        except Exception:
            logger.exception(
                "Handicap recompute failed for user %s",
                user_id,
                extra={"event": "handicap_recompute_failed", "user_id": user_id},
            )
            return None

    async def recompute_many(self, user_ids: Iterable[str]) -> Dict[str, Optional[float]]:
        """Best-effort update for several users in parallel."""
        unique = list(dict.fromkeys(user_ids))
        results = await asyncio.gather(*(self.recompute_handicap(u) for u in unique))
        return dict(zip(unique, results))
