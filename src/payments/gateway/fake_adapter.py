"""Configurable fake redirect gateway for development and testing.

Nothing leaves the process: submitted forms are recorded so tests can
assert on what would have been posted to the payment gateway. It can be
configured at runtime to refuse the hand-off.
"""

from payments.gateway.port import RedirectForm, RedirectGateway, RedirectResult


class FakeRedirectGateway(RedirectGateway):
    """Configurable fake redirect gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment gateway unavailable"
        self.calls: list[RedirectForm] = []
        self.releases: int = 0

    def configure(self, should_succeed: bool, failure_reason: str = "Payment gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def submit(self, form: RedirectForm) -> RedirectResult:
        self.calls.append(form)
        if self.should_succeed:
            return RedirectResult(success=True)
        return RedirectResult(success=False, failure_reason=self.failure_reason)

    def release(self) -> None:
        self.releases += 1

    @property
    def last_form(self) -> RedirectForm | None:
        return self.calls[-1] if self.calls else None
