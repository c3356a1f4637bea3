"""Toast channel: short user-facing notices raised by the cart and payment flows.

The channel is a port so the same controllers can feed a GUI, the CLI or a
test recorder.
"""

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

import structlog

logger = structlog.get_logger(__name__)


class ToastLevel(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Toast:
    level: ToastLevel
    message: str


class ToastChannel(ABC):
    """Abstract interface for toast display adapters."""

    @abstractmethod
    def show(self, toast: Toast) -> None:
        """Display a single toast."""
        ...

    def success(self, message: str) -> None:
        self.show(Toast(ToastLevel.SUCCESS, message))

    def error(self, message: str) -> None:
        self.show(Toast(ToastLevel.ERROR, message))

    def info(self, message: str) -> None:
        self.show(Toast(ToastLevel.INFO, message))


class RecordingToasts(ToastChannel):
    """Keeps toasts in memory for test assertions."""

    def __init__(self) -> None:
        self.toasts: list[Toast] = []

    def show(self, toast: Toast) -> None:
        self.toasts.append(toast)

    def messages(self, level: ToastLevel | None = None) -> list[str]:
        return [t.message for t in self.toasts if level is None or t.level == level]

    @property
    def errors(self) -> list[str]:
        return self.messages(ToastLevel.ERROR)

    @property
    def successes(self) -> list[str]:
        return self.messages(ToastLevel.SUCCESS)

    def reset(self) -> None:
        self.toasts.clear()


_CONSOLE_MARKERS = {
    ToastLevel.SUCCESS: "[ok]",
    ToastLevel.ERROR: "[error]",
    ToastLevel.INFO: "[info]",
}


class ConsoleToasts(ToastChannel):
    """Prints toasts to a text stream (stdout by default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout

    def show(self, toast: Toast) -> None:
        logger.debug("toast_shown", level=toast.level.value, message=toast.message)
        print(f"{_CONSOLE_MARKERS[toast.level]} {toast.message}", file=self.stream)
