"""Redirect gateway port (abstract interface).

Checkout leaves the client: the backend prepares a merchant form and the
browser has to be sent to the external payment gateway with it. Adapters
implement that hand-off so the payment bridge never knows whether it runs
in a browser, a terminal or a test.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RedirectForm:
    """A hidden form to submit to the payment gateway."""

    action: str
    method: str = "POST"
    fields: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RedirectResult:
    """Outcome of handing the user over to the gateway."""

    success: bool
    failure_reason: str | None = None


class RedirectGateway(ABC):
    """Abstract redirect gateway interface."""

    @abstractmethod
    def submit(self, form: RedirectForm) -> RedirectResult:
        """Send the user to ``form.action`` with the form's fields."""
        ...

    def release(self) -> None:
        """Drop whatever the last hand-off left behind; called when the payment ends."""
