"""Combo packages: kinds, institution types and the selected-combo payload.

A package is identified by a stable id of the form ``<institution>-<kind>``,
for example ``rgukt-all-events`` or ``guest-combo``. Everything that needs
to know what a package contains reads the kind from the id, never from the
display name.
"""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import Field

from shared.api.schemas import Identifier, WireModel


class InstitutionType(Enum):
    HOST = "rgukt"
    GUEST = "guest"


class PackageKind(Enum):
    WORKSHOP = "workshop"  # a single workshop, no events
    ALL_EVENTS = "all-events"
    COMBO = "combo"  # all events plus exactly one workshop

    @property
    def includes_workshop(self) -> bool:
        return self in (PackageKind.WORKSHOP, PackageKind.COMBO)

    @property
    def includes_events(self) -> bool:
        return self in (PackageKind.ALL_EVENTS, PackageKind.COMBO)


def package_id(institution: InstitutionType, kind: PackageKind) -> str:
    return f"{institution.value}-{kind.value}"


def parse_package_id(value: str | None) -> tuple[InstitutionType, PackageKind] | None:
    """Split a package id into institution and kind; ``None`` if unrecognised."""
    if not value:
        return None
    prefix, _, suffix = str(value).partition("-")
    try:
        return InstitutionType(prefix), PackageKind(suffix)
    except ValueError:
        return None


class SelectedCombo(WireModel):
    """The combo package a user has chosen, as stored by the backend."""

    id: Identifier
    name: str = ""
    price: float = Field(default=0.0, ge=0)
    features: list[str] = Field(default_factory=list)
    option_name: str | None = Field(default=None, alias="optionName")

    @property
    def kind(self) -> PackageKind | None:
        parsed = parse_package_id(self.id)
        return parsed[1] if parsed else None

    @property
    def institution(self) -> InstitutionType | None:
        parsed = parse_package_id(self.id)
        return parsed[0] if parsed else None

    @property
    def display_name(self) -> str:
        return self.option_name or self.name or self.id


@dataclass(frozen=True)
class PackageOption:
    """One purchasable row of the package catalog."""

    institution: InstitutionType
    kind: PackageKind
    name: str
    price: float
    features: tuple[str, ...] = field(default_factory=tuple)

    @property
    def id(self) -> str:
        return package_id(self.institution, self.kind)

    def to_combo(self) -> SelectedCombo:
        return SelectedCombo(
            id=self.id,
            name=self.name,
            price=self.price,
            features=list(self.features),
        )
