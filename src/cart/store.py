"""Client-side cart store.

Holds the locally cached cart: selected events, selected workshops and at
most one active combo package. Every change replaces the current
``CartState`` snapshot with a new one, so a caller can keep an old snapshot
and restore it later (the cart screen does this to roll back a failed
request). The store does no I/O; the backend stays the source of truth and
pushes its view through ``sync_cart``.

Whenever the contents change the active combo is checked against them again
and dropped when it no longer fits.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

import structlog

from cart.items import CartEvent, CartLine, CartWorkshop, ItemKind, parse_item
from cart.selection import combo_fits
from catalogue.package import SelectedCombo

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartState:
    items: tuple[CartEvent, ...] = ()
    workshops: tuple[CartWorkshop, ...] = ()
    active_combo: SelectedCombo | None = None

    @property
    def is_empty(self) -> bool:
        return not self.items and not self.workshops

    @property
    def fee_total(self) -> float:
        """Sum of the individual item fees (informational; checkout charges the combo price)."""
        return sum(item.fee for item in self.items) + sum(w.price for w in self.workshops)

    def collection(self, kind: ItemKind) -> tuple[CartLine, ...]:
        return self.items if kind == ItemKind.EVENT else self.workshops

    def contains(self, kind: ItemKind, item_id: str) -> bool:
        return any(line.key == str(item_id) for line in self.collection(kind))


def _with_collection(state: CartState, kind: ItemKind, lines: tuple[CartLine, ...]) -> CartState:
    if kind == ItemKind.EVENT:
        return replace(state, items=lines)
    return replace(state, workshops=lines)


def _recheck_combo(state: CartState, reason: str) -> CartState:
    if combo_fits(state.active_combo, state.items, state.workshops):
        return state
    logger.info("cart_combo_cleared", combo_id=state.active_combo.id, reason=reason)
    return replace(state, active_combo=None)


def _normalize_lines(kind: ItemKind, raw: Iterable[CartLine | dict[str, Any]]) -> tuple[CartLine, ...]:
    lines: list[CartLine] = []
    seen: set[str] = set()
    for entry in raw:
        line = parse_item(kind, entry).normalized()
        if line.key is None:
            logger.warning("cart_sync_dropped_item", kind=kind.value, reason="missing id")
            continue
        if line.key in seen:
            continue
        seen.add(line.key)
        lines.append(line)
    return tuple(lines)


class CartStore:
    """Reducer-style container for the cached cart."""

    def __init__(self, state: CartState | None = None) -> None:
        self._state = state or CartState()

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def items(self) -> tuple[CartEvent, ...]:
        return self._state.items

    @property
    def workshops(self) -> tuple[CartWorkshop, ...]:
        return self._state.workshops

    @property
    def active_combo(self) -> SelectedCombo | None:
        return self._state.active_combo

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_to_cart(self, kind: ItemKind, item: CartLine | dict[str, Any]) -> bool:
        """Append an item unless one with the same id is already present.

        Items without an id are ignored (logged, not raised). Returns whether
        the cart changed.
        """
        line = parse_item(kind, item).normalized()
        if line.key is None:
            logger.warning("cart_add_rejected", kind=kind.value, reason="missing id")
            return False

        if self._state.contains(kind, line.key):
            logger.debug("cart_add_duplicate", kind=kind.value, item_id=line.key)
            return False

        lines = self._state.collection(kind) + (line,)
        state = _with_collection(self._state, kind, lines)
        self._state = _recheck_combo(state, reason=f"{kind.value} added")
        logger.debug("cart_item_added", kind=kind.value, item_id=line.key)
        return True

    def remove_from_cart(self, kind: ItemKind, item_id: str) -> bool:
        """Drop an item by id, and with it a combo the cart no longer fits."""
        item_id = str(item_id)
        current = self._state.collection(kind)
        remaining = tuple(line for line in current if line.key != item_id)
        if len(remaining) == len(current):
            return False

        state = _with_collection(self._state, kind, remaining)
        self._state = _recheck_combo(state, reason=f"{kind.value} removed")
        logger.debug("cart_item_removed", kind=kind.value, item_id=item_id)
        return True

    # -------------------------------------------------------------------
    # Combo management
    # -------------------------------------------------------------------
    def select_combo(self, combo: SelectedCombo | dict[str, Any]) -> None:
        if not isinstance(combo, SelectedCombo):
            combo = SelectedCombo.model_validate(combo)
        self._state = replace(self._state, active_combo=combo)

    def clear_combo(self) -> None:
        self._state = replace(self._state, active_combo=None)

    def recheck_combo(self) -> SelectedCombo | None:
        """Drop the active combo if the cart no longer fits it.

        Returns the dropped combo, or ``None`` when nothing changed.
        """
        return self._replace_checked(self._state, reason="combo loaded")

    def _replace_checked(self, state: CartState, reason: str) -> SelectedCombo | None:
        checked = _recheck_combo(state, reason)
        self._state = checked
        if state.active_combo is not None and checked.active_combo is None:
            return state.active_combo
        return None

    # -------------------------------------------------------------------
    # Whole-cart operations
    # -------------------------------------------------------------------
    def sync_cart(
        self,
        items: Iterable[CartEvent | dict[str, Any]] = (),
        workshops: Iterable[CartWorkshop | dict[str, Any]] = (),
        active_combo: SelectedCombo | dict[str, Any] | None = None,
    ) -> SelectedCombo | None:
        """Replace the whole cart with the backend's snapshot.

        Returns the given combo when it does not fit the new contents and
        was dropped, otherwise ``None``.
        """
        if active_combo is not None and not isinstance(active_combo, SelectedCombo):
            active_combo = SelectedCombo.model_validate(active_combo)
        state = CartState(
            items=_normalize_lines(ItemKind.EVENT, items),
            workshops=_normalize_lines(ItemKind.WORKSHOP, workshops),
            active_combo=active_combo,
        )
        return self._replace_checked(state, reason="cart synced")

    def restore(self, state: CartState) -> None:
        """Put back a snapshot taken earlier from ``state``."""
        self._state = state

    def clear_cart(self) -> None:
        self._state = CartState()
