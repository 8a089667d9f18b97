import datetime as dt
from pydantic import Field
from typing import List, Literal, Optional

from .base import BaseGolfModel


class GroupIntent(BaseGolfModel):
    """Write-ahead marker for a multi-round group write.

    Stored before the per-player rounds are written and removed once all of
    them landed. An intent that outlives its TTL marks a partial group.
    """
    group_id: str
    requested_by: str
    operation: Literal["create", "recreate"] = "create"
    player_ids: List[str] = Field(default_factory=list)
    created_at: Optional[dt.datetime] = None
