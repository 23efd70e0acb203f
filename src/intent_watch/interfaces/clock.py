"""Clock protocol - time source and timer scheduling for liveness logic."""

from __future__ import annotations

from typing import Callable, Protocol


class TimerHandle(Protocol):
    """A scheduled one-shot callback."""

    def cancel(self) -> None:
        ...


class Clock(Protocol):
    """Monotonic time plus one-shot timers.

    Injected into components that own timers so tests can advance time
    without waiting on the wall clock.
    """

    def now(self) -> float:
        """Monotonic seconds."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        ...
