"""Redirect gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeRedirectGateway for development and testing
- BrowserRedirectGateway for interactive use

The default adapter comes from the ``payment_gateway`` setting.
"""

from payments.gateway.port import RedirectGateway
from shared.config import get_settings

_current_gateway: RedirectGateway | None = None


def get_gateway() -> RedirectGateway:
    """Return the current redirect gateway (singleton)."""
    global _current_gateway
    if _current_gateway is None:
        adapter = get_settings().payment_gateway
        if adapter == "fake":
            from payments.gateway.fake_adapter import FakeRedirectGateway

            _current_gateway = FakeRedirectGateway()
        elif adapter == "browser":
            from payments.gateway.browser_adapter import BrowserRedirectGateway

            _current_gateway = BrowserRedirectGateway()
        else:
            raise ValueError(f"Unknown payment gateway adapter: {adapter}")
    return _current_gateway


def set_gateway(gateway: RedirectGateway) -> None:
    """Override the active redirect gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to the configured default gateway."""
    global _current_gateway
    _current_gateway = None
