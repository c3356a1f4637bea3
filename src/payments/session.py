"""Payment session returned by ``POST /api/payment/initiate``.

The backend creates the gateway order and hands back everything the client
needs to send the user there: the redirect target and the merchant form
fields. Sessions are never persisted.
"""

from typing import Any

from pydantic import Field, model_validator

from payments.gateway.port import RedirectForm
from shared.api.schemas import Identifier, WireModel


class PaymentSession(WireModel):
    order_id: Identifier = Field(alias="orderId")
    session_id: Identifier | None = Field(default=None, alias="sessionId")
    amount: float = Field(default=0.0, ge=0)
    payment_url: str | None = Field(default=None, alias="paymentUrl")
    method: str = "POST"
    form_fields: dict[str, Any] = Field(default_factory=dict, alias="formFields")

    @model_validator(mode="before")
    @classmethod
    def _read_gateway_shapes(cls, data: Any) -> Any:
        # Gateways that return hosted payment links put the URL under
        # payment_links.web instead of paymentUrl
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "orderId" not in data and "order_id" not in data:
            details = data.get("paymentDetails") or {}
            if isinstance(details, dict) and details.get("orderId") is not None:
                data["orderId"] = details["orderId"]
        if not data.get("paymentUrl") and not data.get("payment_url"):
            links = data.get("paymentLinks") or data.get("payment_links") or {}
            if isinstance(links, dict) and links.get("web"):
                data["paymentUrl"] = links["web"]
                data.setdefault("method", "GET")
        return data

    @property
    def has_redirect(self) -> bool:
        return bool(self.payment_url)

    def redirect_form(self) -> RedirectForm:
        """The form the gateway adapter submits; requires ``payment_url``."""
        if not self.payment_url:
            raise ValueError(f"Payment session {self.order_id} has no redirect target")
        return RedirectForm(
            action=self.payment_url,
            method=self.method.upper(),
            fields={name: str(value) for name, value in self.form_fields.items()},
        )
