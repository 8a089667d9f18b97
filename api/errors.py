"""Translation of domain errors into HTTP responses."""

import logging

from fastapi import HTTPException

from database.exceptions import InvalidPageToken, NotFoundError
from rounds.exceptions import (
    CourseNotFound,
    PartialGroupWriteError,
    PlayersNotFound,
    RoundNotFound,
    RoundOwnershipError,
)

logger = logging.getLogger(__name__)


def to_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, PartialGroupWriteError):
        return HTTPException(409, exc.to_dict())
    if isinstance(exc, RoundOwnershipError):
        return HTTPException(403, str(exc) or "Round belongs to another user")
    if isinstance(exc, RoundNotFound):
        return HTTPException(404, f"Round not found: {exc}")
    if isinstance(exc, CourseNotFound):
        return HTTPException(404, f"Course not found: {exc}")
    if isinstance(exc, PlayersNotFound):
        return HTTPException(404, {"message": "Unknown players", "player_ids": exc.player_ids})
    if isinstance(exc, NotFoundError):
        return HTTPException(404, str(exc))
    if isinstance(exc, (InvalidPageToken, ValueError)):
        return HTTPException(400, str(exc))
    logger.error("Unhandled %s", type(exc).__name__, exc_info=exc)
    return HTTPException(500, "Internal error")
