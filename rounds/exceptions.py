from typing import Dict, Iterable, List, Optional


class RoundGroupError(Exception):
    """Base for round and round-group failures."""


class RoundNotFound(RoundGroupError):
    pass


class RoundOwnershipError(RoundGroupError):
    """Acting user does not own the round, or is not one of the players."""


class CourseNotFound(RoundGroupError):
    pass


class PlayersNotFound(RoundGroupError):
    def __init__(self, player_ids: Iterable[str]):
        self.player_ids: List[str] = list(player_ids)
        super().__init__(f"Unknown players: {', '.join(self.player_ids)}")


class PartialGroupWriteError(RoundGroupError):
    """Some per-player writes of a group operation failed after others succeeded.

    Nothing is rolled back automatically: ``succeeded`` rounds stay stored.
    Groups left partial by a create are removed later by the pending-group sweep.
    """

    def __init__(
        self,
        operation: str,
        succeeded: List[str],
        failed: Dict[str, str],
        group_id: Optional[str] = None,
    ):
        self.operation = operation
        self.succeeded = list(succeeded)
        self.failed = dict(failed)
        self.group_id = group_id
        super().__init__(
            f"{operation} wrote {len(self.succeeded)} of "
            f"{len(self.succeeded) + len(self.failed)} rounds; "
            f"failed for {', '.join(sorted(self.failed))}"
        )

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "group_id": self.group_id,
            "succeeded": self.succeeded,
            "failed": self.failed,
        }
