from .differential import differential_for_holes, score_differential
from .index import (
    HANDICAP_WINDOW,
    MAX_HANDICAP,
    best_differentials,
    handicap_index,
    round_handicap,
    scores_to_use,
)
from .updater import HandicapUpdater

__all__ = [
    "score_differential",
    "differential_for_holes",
    "HANDICAP_WINDOW",
    "MAX_HANDICAP",
    "best_differentials",
    "handicap_index",
    "round_handicap",
    "scores_to_use",
    "HandicapUpdater",
]
