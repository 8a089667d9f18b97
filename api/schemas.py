"""API-specific request and response models."""

import datetime as dt
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from models import HoleScore, TeeColor


class PlayerScoreIn(BaseModel):
    """One player's hole results in a create/update request."""
    user_id: str
    holes: List[HoleScore]


class CreateRoundGroupRequest(BaseModel):
    course_id: str
    course_name: str
    tee_color: TeeColor
    number_of_holes: int = Field(18)
    date: dt.date
    players: List[PlayerScoreIn] = Field(min_length=1)


class UpdateRoundGroupRequest(BaseModel):
    """Score corrections and/or a new list of co-players.

    ``player_ids`` lists the other players; leave it out to keep the current ones.
    """
    scores: List[PlayerScoreIn] = Field(default_factory=list)
    player_ids: Optional[List[str]] = None


class DeleteResponse(BaseModel):
    deleted_count: int


class ReconcileResponse(BaseModel):
    rolled_back: int


class HandicapResponse(BaseModel):
    user_id: str
    handicap_index: float


class LeaderboardEntry(BaseModel):
    """User row for the handicap leaderboard."""
    rank: int
    user_id: str
    display_name: str
    handicap_index: float
    rounds_played: int


class CourseSummaryResponse(BaseModel):
    """Course for card/list views."""
    id: str
    name: Optional[str] = None
    location: Optional[str] = None
    tees: List[str] = Field(default_factory=list)


def scores_by_player(scores: List[PlayerScoreIn]) -> Dict[str, List[HoleScore]]:
    by_player: Dict[str, List[HoleScore]] = {}
    for entry in scores:
        if entry.user_id in by_player:
            raise ValueError(f"Duplicate scores for player {entry.user_id}")
        by_player[entry.user_id] = entry.holes
    return by_player


class CreateCourseRequest(BaseModel):
    """New course with 18-hole ratings keyed by tee colour."""
    name: str = Field(min_length=1)
    location: Optional[str] = None
    course_rating: Dict[str, float] = Field(default_factory=dict)
    slope_rating: Dict[str, float] = Field(default_factory=dict)
