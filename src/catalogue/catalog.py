"""Static package catalog.

Prices and features are fixed for the fest; there is no pricing engine.
Host-institution students get discounted packages, everyone else sees the
guest table.
"""

import structlog

from catalogue.package import (
    InstitutionType,
    PackageKind,
    PackageOption,
    parse_package_id,
)
from shared.identity import AuthenticatedUser

logger = structlog.get_logger(__name__)

_ALL_EVENTS_FEATURES = (
    "Access to All Technical Events",
    "Access to All Non-Technical Events",
    "Tech Fest ID Card",
    "Certificate of Participation",
    "Event Schedule Booklet",
)

_COMBO_FEATURES = (
    "All Events Package Benefits",
    "1 Workshop Registration",
    "Workshop Certificate",
    "Workshop Materials",
)

_WORKSHOP_FEATURES = (
    "1 Workshop Registration",
    "Workshop Certificate",
    "Workshop Materials",
)

_PRICES = {
    InstitutionType.HOST: {
        PackageKind.WORKSHOP: 199,
        PackageKind.ALL_EVENTS: 199,
        PackageKind.COMBO: 299,
    },
    InstitutionType.GUEST: {
        PackageKind.WORKSHOP: 499,
        PackageKind.ALL_EVENTS: 499,
        PackageKind.COMBO: 599,
    },
}

_NAMES = {
    PackageKind.WORKSHOP: ("Single Workshop", _WORKSHOP_FEATURES),
    PackageKind.ALL_EVENTS: ("All Events", _ALL_EVENTS_FEATURES),
    PackageKind.COMBO: ("All Events + Workshop", _COMBO_FEATURES),
}

PACKAGE_CATALOG: dict[InstitutionType, tuple[PackageOption, ...]] = {
    institution: tuple(
        PackageOption(
            institution=institution,
            kind=kind,
            name=_NAMES[kind][0],
            price=price,
            features=_NAMES[kind][1],
        )
        for kind, price in prices.items()
    )
    for institution, prices in _PRICES.items()
}

INSTITUTION_LABELS = {
    InstitutionType.HOST: "RGUKT Students",
    InstitutionType.GUEST: "Non-RGUKT Students",
}


def institution_type(user: AuthenticatedUser | None) -> InstitutionType:
    """Institution pricing tier for a user.

    Reads the backend-verified ``affiliation`` claim. Users without a
    verified affiliation are priced as guests.
    """
    if user is None or not user.affiliation:
        return InstitutionType.GUEST
    try:
        return InstitutionType(user.affiliation.strip().lower())
    except ValueError:
        logger.warning("unknown_affiliation", user_id=user.id, affiliation=user.affiliation)
        return InstitutionType.GUEST


def packages_for(institution: InstitutionType) -> list[PackageOption]:
    return list(PACKAGE_CATALOG[institution])


def find_package(value: str | None) -> PackageOption | None:
    parsed = parse_package_id(value)
    if parsed is None:
        return None
    institution, kind = parsed
    return next(option for option in PACKAGE_CATALOG[institution] if option.kind == kind)
