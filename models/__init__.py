from .base import BaseGolfModel
from .course import Course, TeeColor
from .group_intent import GroupIntent
from .hole_score import HoleScore
from .round import Round, RoundPage
from .user import User

__all__ = [
    "BaseGolfModel",
    "Course",
    "GroupIntent",
    "HoleScore",
    "Round",
    "RoundPage",
    "TeeColor",
    "User",
]
