"""Base pydantic types for backend JSON payloads.

These are external contracts: field names follow the backend's camelCase
on the wire (aliases) and snake_case in Python. Unknown fields are kept so
a round trip through the client never loses data the backend sent.
"""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict


def _as_identifier(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, dict) and "$oid" in value:
        return str(value["$oid"])
    return value


# Backend ids arrive as strings, numbers or Mongo {"$oid": ...} objects
Identifier = Annotated[str, BeforeValidator(_as_identifier)]


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_wire(self) -> dict[str, Any]:
        """Serialise with the backend's field names, skipping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
