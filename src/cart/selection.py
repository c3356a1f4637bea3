"""Combo selection rules: does the chosen package fit what is in the cart?"""

from collections.abc import Sized
from dataclasses import dataclass

from catalogue.package import PackageKind, SelectedCombo


@dataclass(frozen=True)
class ComboCheck:
    ok: bool
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def passed(cls) -> "ComboCheck":
        return cls(ok=True)

    @classmethod
    def fail(cls, message: str) -> "ComboCheck":
        return cls(ok=False, message=message)


def validate_combo_selection(combo: SelectedCombo | None, items: Sized, workshops: Sized) -> ComboCheck:
    """Check a combo against the cart's events (``items``) and workshops.

    Rules by package kind:
        workshop    exactly one workshop, no events
        all-events  at least one event, no workshops
        combo       exactly one workshop, any number of events
    """
    if combo is None:
        return ComboCheck.fail("Please select a package before checkout")

    kind = combo.kind
    event_count = len(items)
    workshop_count = len(workshops)

    if kind is None:
        return ComboCheck.fail("Your selected package is no longer offered. Please choose another package")

    if kind == PackageKind.WORKSHOP:
        if workshop_count != 1:
            return ComboCheck.fail("The Single Workshop package requires exactly one workshop in your cart")
        if event_count > 0:
            return ComboCheck.fail(
                "The Single Workshop package does not include events. Remove the events or choose another package"
            )
        return ComboCheck.passed()

    if kind == PackageKind.ALL_EVENTS:
        if workshop_count > 0:
            return ComboCheck.fail(
                "The All Events package does not include workshops. Remove the workshop or choose All Events + Workshop"
            )
        if event_count == 0:
            return ComboCheck.fail("Add at least one event to use the All Events package")
        return ComboCheck.passed()

    if workshop_count != 1:
        return ComboCheck.fail("The All Events + Workshop package requires exactly one workshop in your cart")
    return ComboCheck.passed()


def combo_fits(combo: SelectedCombo | None, items: Sized, workshops: Sized) -> bool:
    """Whether an active combo still holds for the cart contents.

    No combo always fits. A combo whose package id is unknown is left for
    checkout validation to reject.
    """
    if combo is None or combo.kind is None:
        return True
    return bool(validate_combo_selection(combo, items, workshops))
