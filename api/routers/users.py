"""User API endpoints."""

import asyncio
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from api.dependencies import get_current_user_id, get_db, get_handicaps
from api.errors import to_http_error
from api.schemas import HandicapResponse, LeaderboardEntry
from database.exceptions import NotFoundError
from handicap import HandicapUpdater
from models import User

router = APIRouter()


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    limit: int = Query(50, ge=1, le=100),
    db=Depends(get_db),
):
    """Users by handicap index, lowest first, with their round counts."""
    users = await db.users.list_by_handicap(limit=limit)
    counts = await asyncio.gather(*(db.rounds.count_rounds_for_user(u.id) for u in users))
    return [
        LeaderboardEntry(
            rank=rank,
            user_id=user.id,
            display_name=user.display_name,
            handicap_index=user.handicap_index,
            rounds_played=count,
        )
        for rank, (user, count) in enumerate(zip(users, counts), start=1)
    ]


@router.get("/search", response_model=List[User])
async def search_users(
    q: str = Query(..., min_length=2),
    limit: int = Query(20, ge=1, le=50),
    _: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    """Co-player lookup by name or email for the round form."""
    return await db.users.search_users(q, limit=limit)


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str, db=Depends(get_db)):
    try:
        user = await db.users.get_user(user_id)
    except ValueError as e:
        raise to_http_error(e)
    if not user:
        raise HTTPException(404, "User not found")
    return user


@router.post("/{user_id}/handicap", response_model=HandicapResponse)
async def recalculate_handicap(
    user_id: str,
    handicaps: HandicapUpdater = Depends(get_handicaps),
):
    """Recalculate from the 20 most recent rounds and store the result."""
    try:
        handicap = await handicaps.update_handicap(user_id)
    except (NotFoundError, ValueError) as e:
        raise to_http_error(e)
    return HandicapResponse(user_id=user_id, handicap_index=handicap)
