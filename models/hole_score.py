from pydantic import Field, model_validator
from typing import Optional

from .base import BaseGolfModel


class HoleScore(BaseGolfModel):
    """Represents a player's result on a single hole."""

    hole_number: int = Field(ge=1, le=18)
    par: int = Field(ge=3, le=6)
    strokes: int = Field(ge=1, le=20)
    putts: Optional[int] = Field(None, ge=0, le=10)
    fairway_hit: Optional[bool] = None
    green_in_regulation: Optional[bool] = None

    @model_validator(mode='after')
    def validate_score_consistency(self):
        # Putts cannot exceed strokes
        if self.putts is not None and self.putts > self.strokes:
            raise ValueError(f"Putts ({self.putts}) cannot exceed strokes ({self.strokes})")
        return self

    @classmethod
    def at_par(cls, hole_number: int, par: int) -> "HoleScore":
        """Placeholder result for a player with no entered score: strokes equal par."""
        return cls(hole_number=hole_number, par=par, strokes=par)

