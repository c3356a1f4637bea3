"""Payment bridge: hand the user to the payment gateway and verify on return.

State Machine:
    IDLE → REDIRECTING → VERIFYING → SUCCESS/FAILURE
    IDLE → VERIFYING (the gateway redirected into a fresh process)
    REDIRECTING → IDLE (cancelled), SUCCESS/FAILURE → IDLE (retry, home)

Verification polls ``payment/status`` a bounded number of times. A
``completed`` status settles the order; a terminal failure status ends it;
anything else asks the backend to check the gateway signature. Transport
errors and 5xx answers back off exponentially and try again.
"""

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qs, urlsplit

import structlog

from cart.store import CartStore
from payments.gateway import get_gateway
from payments.gateway.port import RedirectGateway
from payments.session import PaymentSession
from shared.api.client import FestApiClient
from shared.config import Settings, get_settings
from shared.exceptions import ApiError, FestcartError, InvalidTransition, TransportError
from shared.navigation import Navigator
from shared.toasts import ToastChannel

logger = structlog.get_logger(__name__)

COMPLETED_STATUS = "completed"
FAILED_STATUSES = frozenset({"failed", "cancelled", "refunded"})
RETURN_PARAMS = ("order_id", "status", "signature")


class BridgeState(Enum):
    IDLE = "idle"
    REDIRECTING = "redirecting"
    VERIFYING = "verifying"
    SUCCESS = "success"
    FAILURE = "failure"


_VALID_TRANSITIONS = {
    BridgeState.IDLE: {BridgeState.REDIRECTING, BridgeState.VERIFYING, BridgeState.FAILURE},
    BridgeState.REDIRECTING: {BridgeState.VERIFYING, BridgeState.FAILURE, BridgeState.IDLE},
    BridgeState.VERIFYING: {BridgeState.SUCCESS, BridgeState.FAILURE},
    BridgeState.SUCCESS: {BridgeState.IDLE},
    BridgeState.FAILURE: {BridgeState.IDLE},
}


@dataclass(frozen=True)
class VerificationOutcome:
    succeeded: bool
    order_id: str | None = None
    reason: str | None = None
    attempts: int = 0


class PaymentBridge:
    def __init__(
        self,
        api: FestApiClient,
        store: CartStore,
        toasts: ToastChannel,
        navigator: Navigator,
        gateway: RedirectGateway | None = None,
        settings: Settings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.api = api
        self.store = store
        self.toasts = toasts
        self.navigator = navigator
        self._gateway = gateway
        self.settings = settings or get_settings()
        self._sleep = sleep
        self.state = BridgeState.IDLE
        self.session: PaymentSession | None = None
        self.failure_reason: str | None = None

    @property
    def gateway(self) -> RedirectGateway:
        return self._gateway or get_gateway()

    @property
    def busy(self) -> bool:
        return self.state in (BridgeState.REDIRECTING, BridgeState.VERIFYING)

    def _transition(self, target: BridgeState) -> None:
        if target not in _VALID_TRANSITIONS[self.state]:
            raise InvalidTransition(self.state.value, target.value)
        logger.debug("payment_bridge_transition", source=self.state.value, target=target.value)
        self.state = target

    def _fail(self, reason: str, toast: str | None = None) -> None:
        self._transition(BridgeState.FAILURE)
        self.failure_reason = reason
        self.session = None
        self.toasts.error(toast or reason)

    def _settle(self) -> None:
        """Return a finished bridge to IDLE so a new flow can start."""
        if self.state in (BridgeState.SUCCESS, BridgeState.FAILURE):
            self._transition(BridgeState.IDLE)
            self.failure_reason = None

    # -------------------------------------------------------------------
    # Outbound: send the user to the gateway
    # -------------------------------------------------------------------
    def start(self, session: PaymentSession) -> bool:
        """Submit the merchant form for ``session`` through the gateway."""
        self._settle()
        self._transition(BridgeState.REDIRECTING)
        self.session = session

        if not session.has_redirect:
            logger.warning("payment_session_without_redirect", order_id=session.order_id)
            self._fail("Payment gateway did not return a payment link", "Failed to initiate payment")
            return False

        result = self.gateway.submit(session.redirect_form())
        if not result.success:
            logger.warning(
                "payment_redirect_refused",
                order_id=session.order_id,
                reason=result.failure_reason,
            )
            self._fail(result.failure_reason or "Payment redirect failed", "Failed to initiate payment")
            return False

        logger.info("payment_redirected", order_id=session.order_id, amount=session.amount)
        return True

    def cancel(self) -> None:
        if self.state == BridgeState.REDIRECTING:
            logger.info("payment_cancelled", order_id=self.session.order_id if self.session else None)
            self._transition(BridgeState.IDLE)
            self.toasts.error("Payment cancelled")
            self.gateway.release()
        else:
            self._settle()
        self.session = None

    # -------------------------------------------------------------------
    # Inbound: the gateway redirected back
    # -------------------------------------------------------------------
    @staticmethod
    def return_params(url: str) -> dict[str, str]:
        """Pull the gateway return parameters out of a redirect URL."""
        query = parse_qs(urlsplit(url).query)
        return {name: query[name][0] for name in RETURN_PARAMS if query.get(name) and query[name][0]}

    def verify(self, params: Mapping[str, str | None]) -> VerificationOutcome:
        self._settle()
        order_id = params.get("order_id")
        status = params.get("status")
        signature = params.get("signature")

        if not order_id or not status:
            logger.warning("payment_return_incomplete", order_id=order_id, status=status)
            self._fail("Missing payment parameters")
            return VerificationOutcome(succeeded=False, order_id=order_id, reason="Missing payment parameters")

        self._transition(BridgeState.VERIFYING)
        log = logger.bind(order_id=order_id)
        max_attempts = self.settings.verify_max_attempts
        reason = "Payment verification failed"

        for attempt in range(1, max_attempts + 1):
            try:
                current = self.api.payment_status(order_id)
                if current == COMPLETED_STATUS:
                    return self._succeed(order_id, attempt)
                if current in FAILED_STATUSES:
                    log.info("payment_not_completed", status=current)
                    return self._give_up(order_id, f"Payment {current}", attempt)
                if signature:
                    if self.api.verify_payment(order_id, status, signature):
                        return self._succeed(order_id, attempt)
                    return self._give_up(order_id, reason, attempt)
                log.info("payment_pending", attempt=attempt, status=current)
            except (TransportError, ApiError) as exc:
                if not exc.is_transient:
                    log.warning("payment_verify_error", attempt=attempt, error=str(exc))
                    return self._give_up(order_id, reason, attempt)
                log.warning("payment_verify_retry", attempt=attempt, error=str(exc))
            except FestcartError as exc:
                log.warning("payment_verify_error", attempt=attempt, error=str(exc))
                return self._give_up(order_id, reason, attempt)

            if attempt < max_attempts:
                self._sleep(self.settings.verify_backoff_seconds * 2 ** (attempt - 1))

        log.warning("payment_verify_exhausted", attempts=max_attempts)
        return self._give_up(order_id, reason, max_attempts)

    def _succeed(self, order_id: str, attempts: int) -> VerificationOutcome:
        self._transition(BridgeState.SUCCESS)
        self.session = None
        self.gateway.release()
        self.store.clear_cart()
        self.toasts.success("Payment verified!")
        self.navigator.schedule(self.settings.profile_path, self.settings.profile_redirect_delay)
        logger.info("payment_verified", order_id=order_id, attempts=attempts)
        return VerificationOutcome(succeeded=True, order_id=order_id, attempts=attempts)

    def _give_up(self, order_id: str, reason: str, attempts: int) -> VerificationOutcome:
        self._fail(reason, "Error verifying payment")
        self.gateway.release()
        return VerificationOutcome(succeeded=False, order_id=order_id, reason=reason, attempts=attempts)

    # -------------------------------------------------------------------
    # Leaving the result page
    # -------------------------------------------------------------------
    def retry(self) -> None:
        """Back to the cart to try again."""
        self.cancel()
        self.navigator.go(self.settings.cart_path)

    def return_home(self) -> None:
        self.cancel()
        self.navigator.go(self.settings.home_path)
