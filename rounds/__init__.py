from .coordinator import Outing, RoundGroupCoordinator
from .exceptions import (
    CourseNotFound,
    PartialGroupWriteError,
    PlayersNotFound,
    RoundGroupError,
    RoundNotFound,
    RoundOwnershipError,
)

__all__ = [
    "Outing",
    "RoundGroupCoordinator",
    "RoundGroupError",
    "RoundNotFound",
    "RoundOwnershipError",
    "CourseNotFound",
    "PlayersNotFound",
    "PartialGroupWriteError",
]
