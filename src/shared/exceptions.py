"""Exception hierarchy shared by the cart, catalogue and payment code."""


class FestcartError(Exception):
    """Base class for every error raised by festcart."""


class ApiError(FestcartError):
    """The backend answered with a non-2xx status or a ``success: false`` envelope."""

    def __init__(self, status_code: int, detail: str, endpoint: str | None = None) -> None:
        self.status_code = status_code
        self.detail = detail
        self.endpoint = endpoint
        super().__init__(f"{status_code}: {detail}")

    @property
    def is_transient(self) -> bool:
        return self.status_code >= 500


class TransportError(FestcartError):
    """The request never produced a response (connection refused, timeout, ...)."""

    is_transient = True

    def __init__(self, detail: str, endpoint: str | None = None) -> None:
        self.detail = detail
        self.endpoint = endpoint
        super().__init__(detail)


class CheckoutValidationError(FestcartError):
    """A client-side precondition failed.

    ``messages`` maps a field name to a list of user-facing messages, e.g.
    ``{"combo": ["Please select a package before checkout"]}``.
    """

    def __init__(self, messages: dict[str, list[str]]) -> None:
        self.messages = messages
        super().__init__(self.first_message)

    @property
    def first_message(self) -> str:
        for errors in self.messages.values():
            if errors:
                return errors[0]
        return "Invalid checkout state"


class InvalidTransition(FestcartError):
    """A payment bridge state change that the state machine does not allow."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move payment bridge from {current} to {target}")
