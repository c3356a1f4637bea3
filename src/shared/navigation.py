"""Navigation port: page changes requested by the checkout flow."""

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TextIO


@dataclass(frozen=True)
class ScheduledVisit:
    path: str
    delay_seconds: float


class Navigator(ABC):
    """Abstract interface for moving the user between pages."""

    @abstractmethod
    def go(self, path: str) -> None:
        """Navigate immediately."""
        ...

    @abstractmethod
    def schedule(self, path: str, delay_seconds: float) -> None:
        """Navigate after ``delay_seconds``."""
        ...


class RecordingNavigator(Navigator):
    """Records visits instead of performing them."""

    def __init__(self) -> None:
        self.visits: list[str] = []
        self.scheduled: list[ScheduledVisit] = []

    def go(self, path: str) -> None:
        self.visits.append(path)

    def schedule(self, path: str, delay_seconds: float) -> None:
        self.scheduled.append(ScheduledVisit(path=path, delay_seconds=delay_seconds))

    @property
    def last_visit(self) -> str | None:
        return self.visits[-1] if self.visits else None


class ConsoleNavigator(Navigator):
    """Tells a terminal user where to go next."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout

    def go(self, path: str) -> None:
        print(f"-> {path}", file=self.stream)

    def schedule(self, path: str, delay_seconds: float) -> None:
        print(f"-> {path} (in {delay_seconds:g}s)", file=self.stream)
