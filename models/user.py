from datetime import datetime
from pydantic import Field
from typing import Optional

from .base import BaseGolfModel


class User(BaseGolfModel):
    """A golfer and their current handicap index."""

    id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    handicap_index: float = Field(54.0, ge=0, le=54)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else (self.email or self.id or "")
