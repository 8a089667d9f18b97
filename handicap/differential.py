"""WHS score differential.

A differential normalises a gross score against the difficulty of the tee
played: ``((score - rating) * 113) / slope``.

9-hole rounds are scaled to an 18-hole equivalent by doubling both the score
and the 9-hole course rating. The slope is never halved, so callers pass the
9-hole rating (see ``Course.get_ratings``) together with the full slope.
"""

from typing import List

from models import Course, HoleScore

STANDARD_SLOPE = 113


def score_differential(
    total_score: int,
    course_rating: float,
    slope_rating: float,
    number_of_holes: int = 18,
) -> float:
    """Differential for one round, unrounded."""
    if slope_rating is None or slope_rating <= 0:
        raise ValueError(f"Slope rating must be positive, got {slope_rating}")
    if number_of_holes not in (9, 18):
        raise ValueError(f"Number of holes must be 9 or 18, got {number_of_holes}")

    adjusted_score = total_score * 2 if number_of_holes == 9 else total_score
    adjusted_rating = course_rating * 2 if number_of_holes == 9 else course_rating
    return ((adjusted_score - adjusted_rating) * STANDARD_SLOPE) / slope_rating


def differential_for_holes(
    holes: List[HoleScore],
    course: Course,
    tee_color: str,
    number_of_holes: int,
) -> float:
    """Differential for a set of hole results played from ``tee_color`` on ``course``."""
    course_rating, slope_rating = course.get_ratings(tee_color, number_of_holes)
    return score_differential(
        sum(h.strokes for h in holes), course_rating, slope_rating, number_of_holes
    )

