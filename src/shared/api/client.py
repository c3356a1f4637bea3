"""HTTP client for the fest backend REST API.

Every endpoint lives under ``<base>/api/``. Responses use a loose JSON
envelope (``{"success": ..., "error": ..., "details": ...}``); this client
turns non-2xx answers and ``success: false`` envelopes into ``ApiError``
and network failures into ``TransportError`` so callers deal with a single
exception family.
"""

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from cart.items import CartEvent, CartWorkshop, ItemKind, parse_item
from catalogue.package import SelectedCombo
from payments.registrations import Registration
from payments.session import PaymentSession
from shared.api.response import envelope_error, extract_error_detail
from shared.config import get_settings
from shared.exceptions import ApiError, TransportError

logger = structlog.get_logger(__name__)


@dataclass
class CartSnapshot:
    """The backend's view of a user's cart.

    ``combo_known`` is false when the payload carried no ``activeCombo`` key
    at all, so ``active_combo`` says nothing about the server's combo.
    """

    events: list[CartEvent] = field(default_factory=list)
    workshops: list[CartWorkshop] = field(default_factory=list)
    active_combo: SelectedCombo | None = None
    combo_known: bool = False


def _parse_combo(raw: Any) -> SelectedCombo | None:
    if not isinstance(raw, dict) or not raw.get("id"):
        return None
    return SelectedCombo.model_validate(raw)


def _parse_cart(raw: Any) -> CartSnapshot | None:
    """Read a ``cart`` payload; ``None`` when it is not a displayable cart.

    A bare list is the events-only shape older endpoints return. Mutation
    endpoints sometimes echo the raw stored rows (``{eventId, price}``)
    instead of populated items; those are not usable as a snapshot.
    """
    if isinstance(raw, list):
        if not all(isinstance(entry, dict) and "eventInfo" in entry for entry in raw):
            return None
        return CartSnapshot(events=[parse_item(ItemKind.EVENT, entry) for entry in raw])
    if isinstance(raw, dict):
        return CartSnapshot(
            events=[parse_item(ItemKind.EVENT, entry) for entry in raw.get("events") or []],
            workshops=[parse_item(ItemKind.WORKSHOP, entry) for entry in raw.get("workshops") or []],
            active_combo=_parse_combo(raw.get("activeCombo")),
            combo_known="activeCombo" in raw,
        )
    return None


class FestApiClient:
    """Synchronous client for the cart, combo and payment endpoints.

    ``http`` may be any ``httpx.Client``; tests pass a FastAPI
    ``TestClient`` bound to an in-memory backend.
    """

    def __init__(
        self,
        base_url: str | None = None,
        http: httpx.Client | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._http = http if http is not None else httpx.Client(timeout=self.timeout)

    def url(self, endpoint: str) -> str:
        return f"{self.base_url}/api/{endpoint.strip('/')}"

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "FestApiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    def _send(self, method: str, endpoint: str, json: dict | None = None) -> httpx.Response:
        url = self.url(endpoint)
        try:
            response = self._http.request(method, url, json=json)
        except httpx.HTTPError as exc:
            logger.warning("api_transport_error", method=method, endpoint=endpoint, error=str(exc))
            raise TransportError(str(exc) or exc.__class__.__name__, endpoint=endpoint) from exc

        if response.status_code >= 400:
            detail = extract_error_detail(response)
            logger.warning(
                "api_error_response",
                method=method,
                endpoint=endpoint,
                status=response.status_code,
                detail=detail,
            )
            raise ApiError(response.status_code, detail, endpoint=endpoint)
        return response

    def _request(self, method: str, endpoint: str, json: dict | None = None) -> dict[str, Any]:
        response = self._send(method, endpoint, json=json)
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if body.get("success") is False:
            detail = envelope_error(body) or "Request failed"
            logger.warning("api_envelope_failure", method=method, endpoint=endpoint, detail=detail)
            raise ApiError(response.status_code, detail, endpoint=endpoint)

        logger.debug("api_response", method=method, endpoint=endpoint, status=response.status_code)
        return body

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------
    def get_cart(self, user_id: str) -> CartSnapshot:
        body = self._request("GET", f"cart/{user_id}")
        return _parse_cart(body.get("cart")) or CartSnapshot()

    def add_to_cart(self, user_id: str, kind: ItemKind, item_id: str, price: float) -> CartSnapshot | None:
        id_field = "eventId" if kind == ItemKind.EVENT else "workshopId"
        body = self._request(
            "POST",
            "cart/add",
            json={"kindeId": user_id, "item": {id_field: item_id, "price": price}},
        )
        return _parse_cart(body.get("cart"))

    def remove_from_cart(self, user_id: str, kind: ItemKind, item_id: str) -> CartSnapshot | None:
        if kind == ItemKind.WORKSHOP:
            endpoint = f"cart/workshop/{user_id}/{item_id}"
        else:
            endpoint = f"cart/{user_id}/{item_id}"
        body = self._request("DELETE", endpoint)
        return _parse_cart(body.get("cart"))

    # -------------------------------------------------------------------
    # Combo
    # -------------------------------------------------------------------
    def get_active_combo(self, user_id: str) -> SelectedCombo | None:
        body = self._request("GET", f"combo/active/{user_id}")
        return _parse_combo(body.get("combo"))

    def select_combo(self, user_id: str, combo: SelectedCombo) -> SelectedCombo:
        body = self._request("POST", "combo/select", json={"kindeId": user_id, "combo": combo.to_wire()})
        return _parse_combo(body.get("combo")) or combo

    def clear_combo(self, user_id: str) -> None:
        self._request("POST", f"combo/clear/{user_id}")

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def initiate_payment(
        self,
        user_id: str,
        amount: float,
        combo: SelectedCombo,
        items: list[CartEvent],
        workshops: list[CartWorkshop],
    ) -> PaymentSession:
        payload = {
            "amount": amount,
            "cartItems": [item.to_wire() for item in items],
            "workshops": [workshop.to_wire() for workshop in workshops],
            "kindeId": user_id,
            "combo": combo.to_wire(),
        }
        body = self._request("POST", "payment/initiate", json=payload)
        session_data = body.get("sessionData")
        if not isinstance(session_data, dict):
            raise ApiError(502, "Payment session missing from response", endpoint="payment/initiate")
        return PaymentSession.model_validate(session_data)

    def payment_status(self, order_id: str) -> str:
        body = self._request("GET", f"payment/status/{order_id}")
        return str(body.get("status") or "pending").lower()

    def verify_payment(self, order_id: str, status: str, signature: str) -> bool:
        """Ask the backend to check the gateway signature for an order.

        A definitive rejection (4xx or ``success: false``) returns ``False``;
        transient failures propagate so the caller can retry.
        """
        try:
            self._request(
                "POST",
                "payment/verify",
                json={"orderId": order_id, "status": status, "signature": signature},
            )
        except ApiError as exc:
            if exc.is_transient:
                raise
            logger.info("payment_verify_rejected", order_id=order_id, detail=exc.detail)
            return False
        return True

    # -------------------------------------------------------------------
    # Registrations
    # -------------------------------------------------------------------
    def recent_registrations(self, user_id: str) -> list[Registration]:
        body = self._request("GET", f"payment/recent-registrations/{user_id}")
        return [Registration.model_validate(entry) for entry in body.get("registrations") or []]

    def download_receipt(self, registration_id: str) -> bytes:
        """Fetch the PDF receipt of a registration."""
        endpoint = f"payment/receipt/{registration_id}"
        response = self._send("GET", endpoint)
        if "json" in response.headers.get("content-type", ""):
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = envelope_error(body) if isinstance(body, dict) else None
            raise ApiError(response.status_code, detail or "Receipt missing from response", endpoint=endpoint)
        if not response.content:
            raise ApiError(502, "Receipt missing from response", endpoint=endpoint)
        return response.content
