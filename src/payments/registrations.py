"""Registrations created by a paid order, as listed after payment.

``GET /api/payment/recent-registrations/:userId`` returns the user's latest
registrations; each one has a PDF receipt at
``GET /api/payment/receipt/:registrationId``.
"""

from typing import Any

from pydantic import Field, model_validator

from shared.api.schemas import Identifier, WireModel


class RegisteredEvent(WireModel):
    event_id: Identifier | None = Field(default=None, alias="eventId")
    event_name: str = Field(default="", alias="eventName")


class Registration(WireModel):
    id: Identifier = Field(alias="_id")
    selected_events: list[RegisteredEvent] = Field(default_factory=list, alias="selectedEvents")
    amount: float = 0.0
    transaction_id: str | None = Field(default=None, alias="transactionId")
    payment_status: str | None = Field(default=None, alias="paymentStatus")

    @model_validator(mode="before")
    @classmethod
    def _lift_payment_details(cls, data: Any) -> Any:
        # Stored registrations keep the gateway transaction under paymentDetails
        if not isinstance(data, dict) or data.get("transactionId"):
            return data
        details = data.get("paymentDetails")
        if isinstance(details, dict) and details.get("transactionId"):
            data = {**data, "transactionId": details["transactionId"]}
        return data

    @property
    def title(self) -> str:
        for event in self.selected_events:
            if event.event_name:
                return event.event_name
        return "Registration"

    @property
    def receipt_filename(self) -> str:
        return f"receipt_{self.id}.pdf"
