from pydantic import Field, field_validator, model_validator
from typing import Dict, Literal, Optional, Tuple

from .base import BaseGolfModel

TeeColor = Literal["white", "yellow", "blue", "red"]


class Course(BaseGolfModel):
    """Golf course with per-tee 18-hole course and slope ratings."""

    id: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = None
    slope_rating: Dict[str, float] = Field(default_factory=dict)
    course_rating: Dict[str, float] = Field(default_factory=dict)

    @field_validator('slope_rating')
    @classmethod
    def validate_slope_values(cls, v):
        for tee_color, slope in v.items():
            if not 55 <= slope <= 155:
                raise ValueError(f"Slope {slope} for '{tee_color}' outside USGA range (55-155)")
        return v

    @field_validator('course_rating')
    @classmethod
    def validate_course_rating_values(cls, v):
        for tee_color, rating in v.items():
            if not 55.0 <= rating <= 85.0:
                raise ValueError(f"Course rating {rating} for '{tee_color}' outside range (55-85)")
        return v

    @model_validator(mode='after')
    def validate_tee_rating_consistency(self):
        """Ensure every rated tee has both a slope and a course rating."""
        unpaired = set(self.slope_rating) ^ set(self.course_rating)
        if unpaired:
            raise ValueError(f"Tees {sorted(unpaired)} need both slope and course rating")
        return self

    def get_ratings(self, tee_color: str, number_of_holes: int) -> Tuple[float, float]:
        """Return (course rating, slope rating) for a tee and hole count.

        Ratings are stored for 18 holes. A 9-hole round uses half the course
        rating and the full slope, which is what the differential formula expects.
        """
        if tee_color not in self.course_rating or tee_color not in self.slope_rating:
            raise ValueError(f"Course {self.id} has no rating for tee '{tee_color}'")
        if number_of_holes not in (9, 18):
            raise ValueError(f"Number of holes must be 9 or 18, got {number_of_holes}")
        rating = self.course_rating[tee_color]
        if number_of_holes == 9:
            rating = rating / 2
        return rating, self.slope_rating[tee_color]
