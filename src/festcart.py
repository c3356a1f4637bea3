"""festcart command-line client.

Drives the cart, package and checkout flow against a fest backend from a
terminal. Toasts are printed, page changes are shown as ``-> /path``.

Usage:
    festcart --user-id kp_123 cart                    # Show the cart
    festcart --affiliation rgukt packages             # List packages
    festcart --user-id kp_123 add event EVT1 --price 500
    festcart --user-id kp_123 remove workshop WS1
    festcart --user-id kp_123 select rgukt-all-events
    festcart --user-id kp_123 clear-package
    festcart --user-id kp_123 checkout
    festcart verify "https://fest.example/payment/verify?order_id=...&status=..."
    festcart --user-id kp_123 registrations            # After payment
    festcart receipt REG1 --output-dir receipts
"""

import argparse
import sys

import httpx

from cart.items import ItemKind
from cart.screen import CartScreen, CartView
from cart.store import CartStore
from catalogue.catalog import INSTITUTION_LABELS, institution_type, packages_for
from catalogue.package import InstitutionType, PackageOption
from payments.bridge import BridgeState, PaymentBridge
from payments.receipts import RegistrationHistory
from payments.registrations import Registration
from shared.api.client import FestApiClient
from shared.config import get_settings
from shared.identity import AuthenticatedUser
from shared.logging import add_context, clear_context, configure_logging
from shared.navigation import ConsoleNavigator
from shared.toasts import ConsoleToasts

_USER_COMMANDS = {"cart", "add", "remove", "select", "clear-package", "checkout", "registrations"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="festcart", description="Tech fest cart and checkout client")
    parser.add_argument("--user-id", help="Identity provider user id (kindeId)")
    parser.add_argument("--email", help="User email address")
    parser.add_argument("--affiliation", help="Verified institution code, e.g. rgukt")
    parser.add_argument("--api-url", help="Backend base URL (default: FESTCART_API_BASE_URL)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("cart", help="Show the cart and the selected package")
    subparsers.add_parser("packages", help="List the packages offered to the user")

    add_parser = subparsers.add_parser("add", help="Add an event or workshop to the cart")
    add_parser.add_argument("kind", choices=[kind.value for kind in ItemKind])
    add_parser.add_argument("item_id")
    add_parser.add_argument("--price", type=float, default=0.0, help="Registration fee")
    add_parser.add_argument("--title", default="", help="Display title")

    remove_parser = subparsers.add_parser("remove", help="Remove an event or workshop from the cart")
    remove_parser.add_argument("kind", choices=[kind.value for kind in ItemKind])
    remove_parser.add_argument("item_id")

    select_parser = subparsers.add_parser("select", help="Select a package, e.g. rgukt-combo")
    select_parser.add_argument("package_id")

    subparsers.add_parser("clear-package", help="Clear the selected package")
    subparsers.add_parser("checkout", help="Create a payment order and open the gateway")

    verify_parser = subparsers.add_parser("verify", help="Verify a payment after the gateway redirect")
    verify_parser.add_argument("url", nargs="?", help="The URL the gateway redirected to")
    verify_parser.add_argument("--order-id")
    verify_parser.add_argument("--status")
    verify_parser.add_argument("--signature")

    subparsers.add_parser("registrations", help="List the registrations of recent payments")

    receipt_parser = subparsers.add_parser("receipt", help="Download the PDF receipt of a registration")
    receipt_parser.add_argument("registration_id")
    receipt_parser.add_argument("--output-dir", help="Where to save the receipt (default: FESTCART_RECEIPT_DIR)")

    return parser


def render_cart(view: CartView) -> None:
    if view.is_empty:
        print("Your cart is empty")
    for event in view.items:
        print(f"  event     {event.key:<24} {event.title or '-':<32} {event.fee:>8.2f}")
    for workshop in view.workshops:
        print(f"  workshop  {workshop.key:<24} {workshop.title or '-':<32} {workshop.price:>8.2f}")

    if view.active_combo is None:
        print("Package: none selected")
    else:
        print(f"Package: {view.active_combo.display_name} ({view.active_combo.id})")
        print(f"Amount payable: {view.amount:.2f}")
    if not view.is_empty and not view.selection:
        print(f"  ! {view.selection.message}")


def render_packages(options: list[PackageOption], institution: InstitutionType) -> None:
    print(f"Packages for {INSTITUTION_LABELS[institution]}:")
    for option in options:
        print(f"   {option.id:<20} {option.name:<24} {option.price:>6.0f}")
        for feature in option.features:
            print(f"      - {feature}")


def render_registrations(registrations: list[Registration]) -> None:
    if not registrations:
        print("No recent registrations found.")
        return
    for registration in registrations:
        print(f"  {registration.id:<26} {registration.title:<32} {registration.amount:>8.2f}")
        if registration.transaction_id:
            print(f"      Transaction ID: {registration.transaction_id}")


def main(argv: list[str] | None = None, http: httpx.Client | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()

    if args.command in _USER_COMMANDS and not args.user_id:
        parser.error(f"--user-id is required for '{args.command}'")

    add_context(command=args.command, user_id=args.user_id)
    try:
        return _run(args, http)
    finally:
        clear_context()


def _run(args: argparse.Namespace, http: httpx.Client | None) -> int:
    user = None
    if args.user_id:
        user = AuthenticatedUser(id=args.user_id, email=args.email, affiliation=args.affiliation)

    if args.command == "packages":
        institution = institution_type(user)
        render_packages(packages_for(institution), institution)
        return 0

    settings = get_settings()
    api = FestApiClient(base_url=args.api_url or settings.api_base_url, http=http)
    store = CartStore()
    toasts = ConsoleToasts()

    if args.command in ("registrations", "receipt"):
        history = RegistrationHistory(api, toasts, receipt_dir=getattr(args, "output_dir", None))
        if args.command == "receipt":
            path = history.download_receipt(args.registration_id)
            if path is not None:
                print(f"Receipt saved to {path}")
            return 0 if path is not None else 1
        registrations = history.recent(user.id)
        if registrations is None:
            return 1
        render_registrations(registrations)
        return 0

    bridge = PaymentBridge(api, store, toasts, ConsoleNavigator(), settings=settings)

    if args.command == "verify":
        params = bridge.return_params(args.url) if args.url else {}
        for name in ("order_id", "status", "signature"):
            value = getattr(args, name)
            if value:
                params[name] = value
        outcome = bridge.verify(params)
        if outcome.succeeded and user is not None:
            registrations = RegistrationHistory(api, toasts).recent(user.id)
            if registrations is not None:
                render_registrations(registrations)
        return 0 if outcome.succeeded else 1

    screen = CartScreen(api, store, toasts, bridge)
    screen.set_user(user)

    if args.command == "cart":
        render_cart(screen.view())
        return 0
    if args.command == "add":
        item = {"id": args.item_id}
        if args.kind == ItemKind.EVENT.value:
            item.update(fee=args.price, eventInfo={"id": args.item_id, "title": args.title})
        else:
            item.update(price=args.price, title=args.title)
        ok = screen.add_item(ItemKind(args.kind), item)
    elif args.command == "remove":
        ok = screen.remove_item(args.item_id, ItemKind(args.kind))
    elif args.command == "select":
        ok = screen.select_package(args.package_id)
    elif args.command == "clear-package":
        ok = screen.clear_package()
    else:
        session = screen.initiate_payment()
        ok = session is not None and bridge.state == BridgeState.REDIRECTING
        if ok:
            print(f"Order {session.order_id}: complete the payment in your browser")

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
