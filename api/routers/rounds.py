"""Round API endpoints."""

import datetime as dt
import logging
from fastapi import APIRouter, Depends, Query, Request
from typing import List, Optional

from api.dependencies import get_coordinator, get_current_user_id, get_db
from api.errors import to_http_error
from api.schemas import (
    CreateRoundGroupRequest,
    DeleteResponse,
    ReconcileResponse,
    UpdateRoundGroupRequest,
    scores_by_player,
)
from database.exceptions import DatabaseError
from models import Round, RoundPage
from rounds import RoundGroupCoordinator, RoundGroupError

router = APIRouter()
logger = logging.getLogger(__name__)

_HANDLED = (RoundGroupError, DatabaseError, ValueError)


@router.get("", response_model=RoundPage)
async def list_rounds(
    limit: int = Query(20, ge=1, le=100),
    next_token: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    """The acting user's rounds, newest first."""
    try:
        return await db.rounds.query_rounds_for_user(
            user_id, limit=limit, next_token=next_token
        )
    except _HANDLED as e:
        raise to_http_error(e)


@router.post("", response_model=List[Round], status_code=201)
async def create_round_group(
    req: CreateRoundGroupRequest,
    user_id: str = Depends(get_current_user_id),
    coordinator: RoundGroupCoordinator = Depends(get_coordinator),
):
    """Record an outing: one round per player, sharing a group id."""
    try:
        return await coordinator.create_group(
            course_id=req.course_id,
            course_name=req.course_name,
            tee_color=req.tee_color,
            number_of_holes=req.number_of_holes,
            date=req.date,
            requesting_user_id=user_id,
            player_scores=scores_by_player(req.players),
        )
    except _HANDLED as e:
        raise to_http_error(e)


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_pending_groups(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    coordinator: RoundGroupCoordinator = Depends(get_coordinator),
):
    """Roll back group writes still unfinished after the configured TTL."""
    ttl = dt.timedelta(seconds=request.app.state.config.PENDING_GROUP_TTL_SECONDS)
    rolled_back = await coordinator.run_reconciliation(ttl)
    logger.info("Pending-group sweep requested by %s rolled back %d group(s)", user_id, rolled_back)
    return ReconcileResponse(rolled_back=rolled_back)


@router.get("/{round_id}", response_model=Round)
async def get_round(
    round_id: str,
    user_id: str = Depends(get_current_user_id),
    coordinator: RoundGroupCoordinator = Depends(get_coordinator),
):
    try:
        return await coordinator.get_round(round_id, user_id)
    except _HANDLED as e:
        raise to_http_error(e)


@router.get("/{round_id}/group", response_model=List[Round])
async def get_round_group(
    round_id: str,
    user_id: str = Depends(get_current_user_id),
    coordinator: RoundGroupCoordinator = Depends(get_coordinator),
):
    """The round followed by the other players' rounds of the same outing."""
    try:
        return await coordinator.find_group_rounds(round_id, user_id)
    except _HANDLED as e:
        raise to_http_error(e)


@router.put("/{round_id}", response_model=List[Round])
async def update_round_group(
    round_id: str,
    req: UpdateRoundGroupRequest,
    user_id: str = Depends(get_current_user_id),
    coordinator: RoundGroupCoordinator = Depends(get_coordinator),
):
    """Correct scores and/or change who played."""
    try:
        return await coordinator.update_group(
            round_id,
            user_id,
            updated_scores=scores_by_player(req.scores),
            desired_player_ids=req.player_ids,
        )
    except _HANDLED as e:
        raise to_http_error(e)


@router.delete("/{round_id}", response_model=DeleteResponse)
async def delete_round(
    round_id: str,
    delete_related: bool = Query(False),
    user_id: str = Depends(get_current_user_id),
    coordinator: RoundGroupCoordinator = Depends(get_coordinator),
):
    try:
        deleted = await coordinator.delete_round(round_id, user_id, cascade=delete_related)
    except _HANDLED as e:
        raise to_http_error(e)
    return DeleteResponse(deleted_count=deleted)
