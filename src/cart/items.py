"""Cart line items as the backend sends them.

An event line is keyed by ``eventInfo.id``, a workshop line by its ``id``.
Older backend versions fill only one of the id fields, so ``normalized()``
copies whichever is present into the other before the store uses it.
"""

from enum import Enum
from typing import Any

from pydantic import Field, model_validator

from shared.api.schemas import Identifier, WireModel


class ItemKind(Enum):
    EVENT = "event"
    WORKSHOP = "workshop"


class Department(WireModel):
    id: Identifier | None = None
    name: str = ""
    short_name: str | None = Field(default=None, alias="shortName")


class EventInfo(WireModel):
    id: Identifier | None = None
    title: str = ""
    tag: str | None = None
    department: Department | None = None


class CartEvent(WireModel):
    id: Identifier | None = None
    fee: float = 0.0
    event_info: EventInfo = Field(default_factory=EventInfo, alias="eventInfo")
    schedule: dict[str, Any] = Field(default_factory=dict)
    registration: dict[str, Any] = Field(default_factory=dict)
    media: dict[str, Any] = Field(default_factory=dict)

    @property
    def key(self) -> str | None:
        return self.event_info.id or self.id

    @property
    def title(self) -> str:
        return self.event_info.title

    def normalized(self) -> "CartEvent":
        key = self.key
        if key is None:
            return self
        return self.model_copy(
            update={
                "id": self.id or key,
                "event_info": self.event_info.model_copy(update={"id": key}),
            }
        )


class CartWorkshop(WireModel):
    id: Identifier | None = None
    title: str = ""
    description: str = ""
    departments: list[Any] = Field(default_factory=list)
    lecturers: list[Any] = Field(default_factory=list)
    price: float = 0.0
    registration: dict[str, Any] = Field(default_factory=dict)
    media: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fallback_id(cls, data: Any) -> Any:
        # Workshops read straight from the database carry _id or workshopId only
        if isinstance(data, dict) and not data.get("id"):
            fallback = data.get("_id") or data.get("workshopId")
            if fallback is not None:
                data = {key: value for key, value in data.items() if key != "_id"}
                data["id"] = fallback
        return data

    @property
    def key(self) -> str | None:
        return self.id or None

    @property
    def fee(self) -> float:
        return self.price

    def normalized(self) -> "CartWorkshop":
        return self


CartLine = CartEvent | CartWorkshop

_MODELS: dict[ItemKind, type[CartEvent] | type[CartWorkshop]] = {
    ItemKind.EVENT: CartEvent,
    ItemKind.WORKSHOP: CartWorkshop,
}


def parse_item(kind: ItemKind, item: CartLine | dict[str, Any]) -> CartLine:
    """Coerce a raw backend dict into the line model for ``kind``."""
    model = _MODELS[kind]
    if isinstance(item, model):
        return item
    if isinstance(item, WireModel):
        return model.model_validate(item.to_wire())
    return model.model_validate(item)
