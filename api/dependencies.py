from typing import Optional

from fastapi import Header, HTTPException, Request

from handicap import HandicapUpdater
from rounds import RoundGroupCoordinator


def get_db(request: Request):
    """FastAPI dependency that provides the DatabaseManager (or in-memory store)."""
    return request.app.state.db_manager


def get_coordinator(request: Request) -> RoundGroupCoordinator:
    return request.app.state.coordinator


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Acting user, taken from the X-User-Id header."""
    if not x_user_id:
        raise HTTPException(401, "X-User-Id header required")
    return x_user_id


def get_handicaps(request: Request) -> HandicapUpdater:
    return request.app.state.handicaps
