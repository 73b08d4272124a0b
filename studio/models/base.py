"""Shared pydantic base for wire models.

The REST surface speaks camelCase JSON; Python code uses snake_case
attributes. Every model accepts either spelling on input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StudioModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Dump to the JSON shape the API expects."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
