import datetime as dt
from pydantic import Field, computed_field, model_validator
from typing import List, Literal, Optional

from .base import BaseGolfModel
from .course import TeeColor
from .hole_score import HoleScore


class Round(BaseGolfModel):
    """One player's recorded outing on one course on one date.

    Rounds recorded together share a ``group_id``; ``players`` lists the other
    participants. Totals are always derived from ``holes``.
    """
    id: Optional[str] = None
    user_id: str
    course_id: str
    course_name: str
    tee_color: TeeColor
    number_of_holes: Literal[9, 18]
    date: dt.date
    holes: List[HoleScore]
    score_differential: Optional[float] = None
    players: List[str] = Field(default_factory=list)
    group_id: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @model_validator(mode='after')
    def validate_round_shape(self):
        if len(self.holes) != self.number_of_holes:
            raise ValueError(
                f"Expected {self.number_of_holes} hole results, got {len(self.holes)}"
            )
        numbers = [h.hole_number for h in self.holes]
        if len(set(numbers)) != len(numbers):
            raise ValueError("Hole numbers must be unique within a round")
        if self.user_id in self.players:
            raise ValueError("A round's players must not include its owner")
        return self

    @computed_field
    @property
    def total_score(self) -> int:
        """Total strokes for the round."""
        return sum(h.strokes for h in self.holes)

    @computed_field
    @property
    def total_par(self) -> int:
        return sum(h.par for h in self.holes)

    def par_holes(self) -> List[HoleScore]:
        """Par-default results over this round's holes, for a player with no score."""
        return [HoleScore.at_par(h.hole_number, h.par) for h in self.holes]

    def participant_ids(self) -> List[str]:
        """Owner followed by the other players of the outing."""
        return [self.user_id, *self.players]


class RoundPage(BaseGolfModel):
    """One page of a user's rounds, newest first."""
    rounds: List[Round] = Field(default_factory=list)
    next_token: Optional[str] = None

    @computed_field
    @property
    def has_more(self) -> bool:
        return self.next_token is not None
