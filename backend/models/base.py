"""
Base model for outward-facing payloads
Fields are snake_case in Python and camelCase on the wire
"""

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


class BaseModel(PydanticBaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_payload(self) -> dict:
        """JSON-compatible dict with camelCase keys"""
        return self.model_dump(mode="json", by_alias=True)
