"""Cart screen controller.

Orchestrates the backend calls behind the cart page and derives what the
page shows. Nothing here raises to the caller: failed calls become error
toasts, and when the local cart may no longer match the server the screen
re-fetches the server's cart instead of trying to reconcile.

Mutations are optimistic: the store changes first, the request follows, and
a failed request restores the snapshot taken before the change.
"""

from dataclasses import dataclass
from typing import Any

import structlog

from cart.items import CartEvent, CartLine, CartWorkshop, ItemKind, parse_item
from cart.selection import ComboCheck, validate_combo_selection
from cart.store import CartState, CartStore
from catalogue.catalog import find_package, institution_type, packages_for
from catalogue.eligibility import check_eligibility, price_matches_catalog
from catalogue.package import InstitutionType, PackageOption, SelectedCombo
from payments.bridge import PaymentBridge
from payments.session import PaymentSession
from shared.api.client import CartSnapshot, FestApiClient
from shared.exceptions import ApiError, CheckoutValidationError, FestcartError
from shared.identity import AuthenticatedUser
from shared.toasts import ToastChannel

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartView:
    """Everything the cart page renders, derived from the store."""

    loading: bool
    items: tuple[CartEvent, ...]
    workshops: tuple[CartWorkshop, ...]
    active_combo: SelectedCombo | None
    institution: InstitutionType
    packages: tuple[PackageOption, ...]
    packages_interactive: bool
    selection: ComboCheck
    is_empty: bool
    amount: float | None
    can_checkout: bool


def _error_message(exc: FestcartError, fallback: str) -> str:
    if isinstance(exc, ApiError) and exc.detail and not exc.is_transient:
        return exc.detail
    return fallback


class CartScreen:
    def __init__(
        self,
        api: FestApiClient,
        store: CartStore,
        toasts: ToastChannel,
        bridge: PaymentBridge,
        user: AuthenticatedUser | None = None,
    ) -> None:
        self.api = api
        self.store = store
        self.toasts = toasts
        self.bridge = bridge
        self.user = user
        self.loading = False

    @property
    def institution(self) -> InstitutionType:
        return institution_type(self.user)

    def set_user(self, user: AuthenticatedUser | None) -> None:
        """Attach the signed-in user; loads the cart once an id is known."""
        previous = self.user.id if self.user else None
        self.user = user
        if user is not None and user.is_identified and user.id != previous:
            self.mount()

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------
    def mount(self) -> None:
        if self.user is None or not self.user.is_identified:
            return
        self.loading = True
        try:
            self.refresh()
        finally:
            self.loading = False

    def refresh(self) -> None:
        """Fetch the cart and the active combo; each failure keeps its slice.

        A server combo that does not fit the server cart is cleared on both
        sides.
        """
        dropped = self._fetch_cart()
        dropped = self._fetch_combo() or dropped
        self._clear_dropped_combo(dropped)

    def _fetch_cart(self) -> SelectedCombo | None:
        try:
            snapshot = self.api.get_cart(self.user.id)
        except FestcartError as exc:
            logger.warning("cart_fetch_failed", user_id=self.user.id, error=str(exc))
            self.toasts.error("Failed to load cart")
            return None
        return self._sync(snapshot, self.store.active_combo)

    def _fetch_combo(self) -> SelectedCombo | None:
        try:
            combo = self.api.get_active_combo(self.user.id)
        except FestcartError as exc:
            logger.warning("combo_fetch_failed", user_id=self.user.id, error=str(exc))
            self.toasts.error("Failed to load package selection")
            return None
        if combo is None:
            self.store.clear_combo()
            return None
        self.store.select_combo(combo)
        return self.store.recheck_combo()

    def _sync(self, snapshot: CartSnapshot, local_combo: SelectedCombo | None) -> SelectedCombo | None:
        # The snapshot's combo wins whenever the payload carried one, null included
        combo = snapshot.active_combo if snapshot.combo_known else local_combo
        return self.store.sync_cart(snapshot.events, snapshot.workshops, combo)

    def _apply_snapshot(self, snapshot: CartSnapshot | None, combo_cleared: bool) -> SelectedCombo | None:
        """Adopt the server cart returned by a mutation; returns a combo dropped on the way."""
        if snapshot is None:
            return self._fetch_cart()
        if combo_cleared:
            self.store.sync_cart(snapshot.events, snapshot.workshops, None)
            return None
        return self._sync(snapshot, self.store.active_combo)

    def _clear_dropped_combo(self, dropped: SelectedCombo | None) -> None:
        """Clear on the server a combo the cart no longer fits.

        The local combo is already gone. When the server refuses, it stays
        gone locally and the next refresh drops it again.
        """
        if dropped is None:
            return
        try:
            self.api.clear_combo(self.user.id)
        except FestcartError as exc:
            logger.warning("combo_clear_failed", combo_id=dropped.id, error=str(exc))
            self.toasts.error(f"{dropped.display_name} could not be cleared on the server. Select a package again")
            return
        self.toasts.info(f"{dropped.display_name} was cleared. Select a package again")

    def _dropped_by_change(self, before: CartState) -> SelectedCombo | None:
        if before.active_combo is not None and self.store.active_combo is None:
            return before.active_combo
        return None

    def _rollback(self, before: CartState, exc: FestcartError, message: str) -> None:
        logger.warning("cart_change_rolled_back", user_id=self.user.id, error=str(exc))
        self.store.restore(before)
        self.toasts.error(_error_message(exc, message))
        self.refresh()

    def _require_user(self, message: str) -> bool:
        if self.user is None or not self.user.is_identified:
            self.toasts.error(message)
            return False
        return True

    # -------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------
    def add_item(self, kind: ItemKind, item: CartLine | dict[str, Any]) -> bool:
        if not self._require_user("Please sign in to add items to your cart"):
            return False

        line = parse_item(kind, item).normalized()
        if line.key is None:
            logger.warning("cart_add_rejected", kind=kind.value, reason="missing id")
            self.toasts.error("This item cannot be added to the cart")
            return False
        if self.store.state.contains(kind, line.key):
            self.toasts.error("This item is already in your cart")
            return False

        before = self.store.state
        self.store.add_to_cart(kind, line)
        dropped = self._dropped_by_change(before)
        try:
            snapshot = self.api.add_to_cart(self.user.id, kind, line.key, line.fee)
        except FestcartError as exc:
            self._rollback(before, exc, "Failed to add item to cart")
            return False

        dropped = self._apply_snapshot(snapshot, combo_cleared=dropped is not None) or dropped
        self.toasts.success("Added to cart")
        self._clear_dropped_combo(dropped)
        return True

    def remove_item(self, item_id: str, kind: ItemKind) -> bool:
        """Remove an item; the delete is sent even when the local cache lacks it."""
        if not self._require_user("Please sign in to manage your cart"):
            return False

        before = self.store.state
        if not self.store.remove_from_cart(kind, item_id):
            logger.info("cart_remove_not_cached", kind=kind.value, item_id=item_id)
        dropped = self._dropped_by_change(before)

        try:
            snapshot = self.api.remove_from_cart(self.user.id, kind, item_id)
        except FestcartError as exc:
            self._rollback(before, exc, "Failed to remove item")
            return False

        # The server has applied the delete from here on; nothing below rolls it back
        dropped = self._apply_snapshot(snapshot, combo_cleared=dropped is not None) or dropped
        self.toasts.success("Item removed from cart")
        self._clear_dropped_combo(dropped)
        return True

    # -------------------------------------------------------------------
    # Packages
    # -------------------------------------------------------------------
    def select_package(self, package_id: str) -> bool:
        if not self._require_user("Please sign in to select a package"):
            return False

        option = find_package(package_id)
        if option is None:
            self.toasts.error("This package is no longer offered. Please choose another package")
            return False

        check = check_eligibility(option, self.institution)
        if check:
            check = validate_combo_selection(option.to_combo(), self.store.items, self.store.workshops)
        if not check:
            self.toasts.error(check.message)
            return False

        try:
            saved = self.api.select_combo(self.user.id, option.to_combo())
        except FestcartError as exc:
            logger.warning("combo_select_failed", package_id=option.id, error=str(exc))
            self.toasts.error(_error_message(exc, "Failed to select package"))
            return False

        self.store.select_combo(saved)
        self.toasts.success(f"{option.name} package selected")
        return True

    def clear_package(self) -> bool:
        if not self._require_user("Please sign in to manage your cart"):
            return False
        try:
            self.api.clear_combo(self.user.id)
        except FestcartError as exc:
            logger.warning("combo_clear_failed", error=str(exc))
            self.toasts.error(_error_message(exc, "Failed to clear package"))
            return False
        self.store.clear_combo()
        return True

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def checkout_errors(self) -> dict[str, list[str]]:
        """Preconditions for payment, keyed by what is missing."""
        errors: dict[str, list[str]] = {}
        if self.user is None or not self.user.is_identified:
            errors["user"] = ["Please sign in to continue"]
        if self.bridge.busy:
            errors["payment"] = ["A payment is already in progress"]

        combo = self.store.active_combo
        selection = validate_combo_selection(combo, self.store.items, self.store.workshops)
        if not selection:
            errors.setdefault("combo", []).append(selection.message)
        elif combo is not None:
            eligibility = check_eligibility(combo, self.institution)
            if not eligibility:
                errors.setdefault("combo", []).append(eligibility.message)
        return errors

    def ensure_checkout_ready(self) -> SelectedCombo:
        errors = self.checkout_errors()
        if errors:
            raise CheckoutValidationError(errors)
        return self.store.active_combo

    def initiate_payment(self) -> PaymentSession | None:
        """Create the payment order for the selected package and redirect.

        The amount charged is always the package price, whatever the
        individual item fees add up to.
        """
        try:
            combo = self.ensure_checkout_ready()
        except CheckoutValidationError as exc:
            self.toasts.error(exc.first_message)
            return None

        if not price_matches_catalog(combo):
            logger.warning("combo_price_mismatch", combo_id=combo.id, price=combo.price)

        try:
            session = self.api.initiate_payment(
                self.user.id,
                combo.price,
                combo,
                list(self.store.items),
                list(self.store.workshops),
            )
        except FestcartError as exc:
            logger.warning("payment_initiation_failed", user_id=self.user.id, error=str(exc))
            self.toasts.error(_error_message(exc, "Failed to initiate payment"))
            return None

        logger.info("payment_initiated", order_id=session.order_id, amount=combo.price)
        self.bridge.start(session)
        return session

    # -------------------------------------------------------------------
    # View
    # -------------------------------------------------------------------
    def view(self) -> CartView:
        state = self.store.state
        institution = self.institution
        selection = validate_combo_selection(state.active_combo, state.items, state.workshops)
        return CartView(
            loading=self.loading,
            items=state.items,
            workshops=state.workshops,
            active_combo=state.active_combo,
            institution=institution,
            packages=tuple(packages_for(institution)),
            packages_interactive=not self.loading and not state.is_empty,
            selection=selection,
            is_empty=state.is_empty,
            amount=state.active_combo.price if state.active_combo else None,
            can_checkout=not self.loading and not state.is_empty and not self.checkout_errors(),
        )
