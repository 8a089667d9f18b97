"""Multi-player round groups.

An outing played by several users is stored as one independent round per
player. Siblings share a ``group_id`` and list each other in ``players``; rounds
written before group ids existed are matched on (date, course) instead. The
store only offers single-round atomic writes, so group writes are fanned out in
parallel and bracketed by a ``GroupIntent`` marker that the reconciliation sweep
uses to clear out groups that never completed.
"""

import asyncio
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

from database.protocols import (
    CourseRepository,
    GroupIntentRepository,
    RoundRepository,
    UserRepository,
)
from handicap.differential import differential_for_holes
from handicap.updater import HandicapUpdater
from models import Course, GroupIntent, HoleScore, Round
from rounds.exceptions import (
    CourseNotFound,
    PartialGroupWriteError,
    PlayersNotFound,
    RoundNotFound,
    RoundOwnershipError,
)

logger = logging.getLogger(__name__)

PlayerScores = Mapping[str, Sequence[HoleScore]]

# Upper bound on rounds one user logs on one course on one day
_SAME_DAY_LIMIT = 10


@dataclass(frozen=True)
class Outing:
    """What every round of one group shares."""
    course: Course
    course_id: str
    course_name: str
    tee_color: str
    number_of_holes: int
    date: dt.date

    @classmethod
    def from_round(cls, round_: Round, course: Course) -> "Outing":
        return cls(
            course=course,
            course_id=round_.course_id,
            course_name=round_.course_name,
            tee_color=round_.tee_color,
            number_of_holes=round_.number_of_holes,
            date=round_.date,
        )

    def differential(self, holes: Sequence[HoleScore]) -> float:
        return differential_for_holes(
            list(holes), self.course, self.tee_color, self.number_of_holes
        )

    def build_round(
        self,
        user_id: str,
        holes: Sequence[HoleScore],
        participants: Sequence[str],
        group_id: Optional[str],
    ) -> Round:
        return Round(
            user_id=user_id,
            course_id=self.course_id,
            course_name=self.course_name,
            tee_color=self.tee_color,
            number_of_holes=self.number_of_holes,
            date=self.date,
            holes=list(holes),
            score_differential=self.differential(holes),
            players=[p for p in participants if p != user_id],
            group_id=group_id,
        )


def _split_results(keys: Sequence[str], results: Sequence) -> Tuple[list, Dict[str, str]]:
    """Pair gather(return_exceptions=True) results with their keys."""
    succeeded, failed = [], {}
    for key, result in zip(keys, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            failed[key] = str(result) or type(result).__name__
        else:
            succeeded.append((key, result))
    return succeeded, failed


class RoundGroupCoordinator:
    """Creates, edits and deletes the per-player rounds of shared outings."""

    def __init__(
        self,
        rounds: RoundRepository,
        users: UserRepository,
        courses: CourseRepository,
        intents: GroupIntentRepository,
        handicaps: HandicapUpdater,
    ):
        self._rounds = rounds
        self._users = users
        self._courses = courses
        self._intents = intents
        self._handicaps = handicaps

    @classmethod
    def from_database(cls, database) -> "RoundGroupCoordinator":
        """Wire up from a DatabaseManager or InMemoryDatabase."""
        return cls(
            database.rounds,
            database.users,
            database.courses,
            database.intents,
            HandicapUpdater(database.rounds, database.users),
        )

    @property
    def handicaps(self) -> HandicapUpdater:
        return self._handicaps

    async def get_round(self, round_id: str, requesting_user_id: str) -> Round:
        """Load a round the requester owns. Raises RoundNotFound or RoundOwnershipError."""
        round_ = await self._rounds.get_round(round_id)
        if round_ is None:
            raise RoundNotFound(round_id)
        if round_.user_id != requesting_user_id:
            raise RoundOwnershipError(f"Round {round_id} belongs to another user")
        return round_

    # ================================================================
    # Private helpers
    # ================================================================

    async def _get_course(self, course_id: str) -> Course:
        course = await self._courses.get_course(course_id)
        if course is None:
            raise CourseNotFound(course_id)
        return course

    async def _ensure_players_exist(self, player_ids: Sequence[str]) -> None:
        found = {u.id for u in await self._users.get_users(list(player_ids))}
        missing = [p for p in player_ids if p not in found]
        if missing:
            raise PlayersNotFound(missing)

    async def _settle_intent(self, group_id: Optional[str]) -> None:
        """Drop a group's pending marker once an owner edits or deletes from it.

        From then on the surviving rounds are the group, whatever the original
        write listed.
        """
        if group_id and await self._intents.delete_intent(group_id):
            logger.info(
                "Settled pending intent for group %s", group_id,
                extra={"event": "round_group_intent_settled", "group_id": group_id},
            )

    async def _write_group(
        self,
        rounds: List[Round],
        *,
        group_id: Optional[str],
        requested_by: str,
        operation: str,
    ) -> List[Round]:
        """Write all rounds in parallel; raise PartialGroupWriteError if any failed."""
        if group_id:
            await self._intents.create_intent(GroupIntent(
                group_id=group_id,
                requested_by=requested_by,
                operation=operation,
                player_ids=[r.user_id for r in rounds],
            ))

        results = await asyncio.gather(
            *(self._rounds.create_round(r) for r in rounds), return_exceptions=True
        )
        written, failed = _split_results([r.user_id for r in rounds], results)
        if failed:
            logger.error(
                "Round group %s: %d of %d writes failed (%s)",
                operation, len(failed), len(rounds), ", ".join(sorted(failed)),
                extra={"event": "round_group_partial_write", "group_id": group_id},
            )
            raise PartialGroupWriteError(
                operation, [user_id for user_id, _ in written], failed, group_id
            )

        if group_id:
            try:
                await self._intents.delete_intent(group_id)
            except Exception:
                # The sweep sees a complete group and only drops the marker
                logger.exception("Could not clear intent for complete group %s", group_id)
        return [r for _, r in written]

    @staticmethod
    def _is_legacy_sibling(anchor: Round, candidate: Round) -> bool:
        return (
            candidate.id != anchor.id
            and candidate.group_id is None
            and anchor.user_id in candidate.players
        )

    # ================================================================
    # Discovery
    # ================================================================

    async def discover_group(self, anchor: Round) -> Dict[str, Round]:
        """Rounds of the anchor's outing keyed by owner, anchor included.

        Grouped rounds are found by ``group_id``. Rounds without one are matched
        per listed player on (date, course) where the candidate lists the anchor's
        owner as a co-player. Players whose round cannot be found are absent.
        """
        found: Dict[str, Round] = {}
        if anchor.group_id:
            for member in await self._rounds.get_rounds_by_group(anchor.group_id):
                if member.user_id in anchor.participant_ids():
                    found[member.user_id] = member
        else:
            others = anchor.players
            pages = await asyncio.gather(*(
                self._rounds.query_rounds_for_user(
                    player_id,
                    date=anchor.date,
                    course_id=anchor.course_id,
                    limit=_SAME_DAY_LIMIT,
                )
                for player_id in others
            ))
            for player_id, page in zip(others, pages):
                match = next(
                    (r for r in page.rounds if self._is_legacy_sibling(anchor, r)), None
                )
                if match is not None:
                    found[player_id] = match
        found[anchor.user_id] = anchor
        return found

    async def find_group_rounds(self, round_id: str, requesting_user_id: str) -> List[Round]:
        """The requester's round followed by its discoverable siblings."""
        anchor = await self.get_round(round_id, requesting_user_id)
        siblings = await self.discover_group(anchor)
        return [anchor] + [r for user_id, r in siblings.items() if user_id != anchor.user_id]

    # ================================================================
    # Create
    # ================================================================

    async def create_group(
        self,
        course_id: str,
        course_name: str,
        tee_color: str,
        number_of_holes: int,
        date: dt.date,
        requesting_user_id: str,
        player_scores: PlayerScores,
    ) -> List[Round]:
        """Store one round per player for a shared outing.

        A single player produces a solo round with no group id.
        """
        player_ids = list(player_scores)
        if not player_ids:
            raise ValueError("A round needs at least one player")
        if requesting_user_id not in player_scores:
            raise RoundOwnershipError("Requesting user must be one of the players")

        await self._ensure_players_exist(player_ids)
        course = await self._get_course(course_id)
        outing = Outing(
            course=course,
            course_id=course_id,
            course_name=course_name,
            tee_color=tee_color,
            number_of_holes=number_of_holes,
            date=date,
        )
        group_id = str(uuid4()) if len(player_ids) > 1 else None
        rounds = [
            outing.build_round(player_id, player_scores[player_id], player_ids, group_id)
            for player_id in player_ids
        ]

        created = await self._write_group(
            rounds, group_id=group_id, requested_by=requesting_user_id, operation="create"
        )
        logger.info(
            "Created %d round(s) on %s for %s", len(created), date, course_name,
            extra={"group_id": group_id},
        )
        await self._handicaps.recompute_many(player_ids)
        return created

    # ================================================================
    # Update
    # ================================================================

    async def update_group(
        self,
        anchor_round_id: str,
        requesting_user_id: str,
        updated_scores: Optional[PlayerScores] = None,
        desired_player_ids: Optional[Sequence[str]] = None,
    ) -> List[Round]:
        """Apply score corrections and/or membership changes to an outing.

        ``desired_player_ids`` lists the other players (None keeps the current
        ones). Adding a player, or keeping one whose round cannot be found,
        recreates the whole group; otherwise rounds are updated in place.
        """
        anchor = await self.get_round(anchor_round_id, requesting_user_id)
        updated_scores = dict(updated_scores or {})

        others = anchor.players if desired_player_ids is None else desired_player_ids
        desired = [anchor.user_id] + [
            p for p in dict.fromkeys(others) if p != anchor.user_id
        ]
        unexpected = set(updated_scores) - set(desired)
        if unexpected:
            raise ValueError(f"Scores given for players not in the round: {sorted(unexpected)}")

        siblings = await self.discover_group(anchor)
        added = [p for p in desired if p not in anchor.participant_ids()]
        if added:
            await self._ensure_players_exist(added)
        await self._settle_intent(anchor.group_id)

        if added or any(p not in siblings for p in desired):
            return await self._recreate_group(
                anchor, siblings, desired, updated_scores, requesting_user_id
            )
        return await self._update_in_place(anchor, siblings, desired, updated_scores)

    async def _recreate_group(
        self,
        anchor: Round,
        siblings: Dict[str, Round],
        desired: List[str],
        updated_scores: Dict[str, Sequence[HoleScore]],
        requesting_user_id: str,
    ) -> List[Round]:
        outing = Outing.from_round(anchor, await self._get_course(anchor.course_id))
        group_id = str(uuid4())

        new_rounds = []
        for player_id in desired:
            holes = updated_scores.get(player_id)
            if holes is None and player_id in siblings:
                holes = siblings[player_id].holes
            if holes is None:
                holes = anchor.par_holes()
            new_rounds.append(outing.build_round(player_id, holes, desired, group_id))

        # New rounds first: a failure here leaves the existing group untouched
        created = await self._write_group(
            new_rounds, group_id=group_id, requested_by=requesting_user_id,
            operation="recreate",
        )

        replaced = [r for user_id, r in siblings.items() if user_id in desired]
        dropped = [r for user_id, r in siblings.items() if user_id not in desired]
        results = await asyncio.gather(
            *(self._rounds.delete_round(r.id) for r in replaced),
            *(self._rounds.update_round(r.id, players=[], group_id=None) for r in dropped),
            return_exceptions=True,
        )
        retired, failed = _split_results(
            [r.user_id for r in replaced] + [r.user_id for r in dropped], results
        )

        logger.info(
            "Recreated group of %d from round %s (%d retired)",
            len(created), anchor.id, len(retired), extra={"group_id": group_id},
        )
        await self._handicaps.recompute_many([*anchor.participant_ids(), *desired])
        if failed:
            raise PartialGroupWriteError(
                "retire", [user_id for user_id, _ in retired], failed, group_id
            )
        return created

    async def _update_in_place(
        self,
        anchor: Round,
        siblings: Dict[str, Round],
        desired: List[str],
        updated_scores: Dict[str, Sequence[HoleScore]],
    ) -> List[Round]:
        outing = Outing.from_round(anchor, await self._get_course(anchor.course_id))
        group_id = (anchor.group_id or str(uuid4())) if len(desired) > 1 else None

        changes: Dict[str, dict] = {}
        for player_id in desired:
            current = siblings[player_id]
            holes = list(updated_scores.get(player_id, current.holes))
            changes[player_id] = {
                "holes": holes,
                "score_differential": outing.differential(holes),
                "players": [p for p in desired if p != player_id],
                "group_id": group_id,
            }
        for player_id in siblings:
            if player_id not in desired:
                changes[player_id] = {"players": [], "group_id": None}

        # Validate every new version before the first write
        for player_id, fields in changes.items():
            siblings[player_id].revalidated(**fields)

        player_ids = list(changes)
        results = await asyncio.gather(
            *(self._rounds.update_round(siblings[p].id, **changes[p]) for p in player_ids),
            return_exceptions=True,
        )
        written, failed = _split_results(player_ids, results)
        for player_id, result in written:
            if result is None:
                failed[player_id] = "round no longer exists"
        updated = [(p, r) for p, r in written if r is not None]

        await self._handicaps.recompute_many(player_ids)
        if failed:
            raise PartialGroupWriteError(
                "update", [user_id for user_id, _ in updated], failed, group_id
            )
        logger.info("Updated %d round(s) from round %s", len(updated), anchor.id)
        return [r for user_id, r in updated if user_id in desired]

    # ================================================================
    # Delete
    # ================================================================

    async def delete_round(
        self, round_id: str, requesting_user_id: str, cascade: bool = False
    ) -> int:
        """Delete a round, or with ``cascade`` every discoverable round of its outing.

        Returns how many rounds were deleted.
        """
        round_ = await self.get_round(round_id, requesting_user_id)
        await self._settle_intent(round_.group_id)
        if cascade:
            targets = list((await self.discover_group(round_)).values())
        else:
            targets = [round_]

        results = await asyncio.gather(
            *(self._rounds.delete_round(r.id) for r in targets), return_exceptions=True
        )
        outcomes, failed = _split_results([r.id for r in targets], results)
        deleted_ids = {round_id_ for round_id_, ok in outcomes if ok}
        owners = [r.user_id for r in targets if r.id in deleted_ids]

        logger.info(
            "Deleted %d round(s) starting from %s (cascade=%s)",
            len(deleted_ids), round_id, cascade,
        )
        await self._handicaps.recompute_many(owners)
        if failed:
            by_owner = {r.id: r.user_id for r in targets}
            raise PartialGroupWriteError(
                "delete",
                owners,
                {by_owner[rid]: reason for rid, reason in failed.items()},
                round_.group_id,
            )
        return len(deleted_ids)

    # ================================================================
    # Reconciliation
    # ================================================================

    async def reconcile_pending_groups(self, older_than: dt.datetime) -> int:
        """Remove groups whose write never completed. Returns how many were rolled back.

        An intent older than ``older_than`` whose group has a round for every
        listed player was complete and is simply cleared.
        """
        rolled_back = 0
        for intent in await self._intents.list_stale_intents(older_than):
            try:
                members = await self._rounds.get_rounds_by_group(intent.group_id)
                if set(intent.player_ids) <= {r.user_id for r in members}:
                    await self._intents.delete_intent(intent.group_id)
                    continue

                await asyncio.gather(*(self._rounds.delete_round(r.id) for r in members))
                await self._intents.delete_intent(intent.group_id)
                await self._handicaps.recompute_many(r.user_id for r in members)
                rolled_back += 1
                logger.warning(
                    "Rolled back partial %s group %s (%d of %d rounds written)",
                    intent.operation, intent.group_id, len(members), len(intent.player_ids),
                    extra={"event": "round_group_rolled_back", "group_id": intent.group_id},
                )
            except Exception:
                logger.exception("Could not reconcile pending group %s", intent.group_id)
        return rolled_back

    async def run_reconciliation(self, ttl: dt.timedelta) -> int:
        return await self.reconcile_pending_groups(
            dt.datetime.now(dt.timezone.utc) - ttl
        )
