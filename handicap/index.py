"""Handicap index from a player's recent score differentials (WHS best-N-of-20)."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List

HANDICAP_WINDOW = 20
MAX_HANDICAP = 54.0
MIN_HANDICAP = 0.0

# (minimum differentials available, how many of the best are averaged)
_SCORES_TO_USE = [
    (20, 8),
    (19, 7),
    (16, 6),
    (12, 5),
    (9, 4),
    (6, 3),
    (3, 2),
    (1, 1),
]


def scores_to_use(available: int) -> int:
    """How many of the lowest differentials count, given how many exist."""
    for minimum, count in _SCORES_TO_USE:
        if available >= minimum:
            return count
    return 0


def round_handicap(value: float) -> float:
    """Round to one decimal, halves away from zero (13.45 -> 13.5, -0.05 -> -0.1)."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def clamp_handicap(value: float) -> float:
    return max(MIN_HANDICAP, min(MAX_HANDICAP, value))


def best_differentials(differentials: Iterable[float]) -> List[float]:
    """The differentials that count towards the index, lowest first."""
    ordered = sorted(differentials)
    return ordered[:scores_to_use(len(ordered))]


def handicap_index(differentials: Iterable[float]) -> float:
    """Handicap index for a set of differentials.

    No differentials means no data, which maps to the maximum handicap.
    """
    best = best_differentials(differentials)
    if not best:
        return MAX_HANDICAP
    average = sum(best) / len(best)
    return clamp_handicap(round_handicap(average))
