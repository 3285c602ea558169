"""Base schema type for everything that crosses an HTTP boundary."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Pydantic base with the camelCase wire format both services speak.

    Python code uses snake_case attributes; JSON uses camelCase keys.
    Either spelling is accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """JSON-compatible dict with camelCase keys and ``None`` values dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
