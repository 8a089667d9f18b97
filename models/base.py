from pydantic import BaseModel, ConfigDict
from typing import Any


class BaseGolfModel(BaseModel):
    """Shared configuration and methods for the round and handicap models."""
    model_config = ConfigDict(validate_assignment=True)

    def revalidated(self, **changes: Any):
        """Copy with ``changes`` applied, running every field and model validator.

        Unlike ``model_copy(update=...)`` this rejects a combination of values
        that is invalid as a whole (e.g. a 9-hole round given 18 hole results).
        """
        return type(self).model_validate({**self.model_dump(), **changes})
