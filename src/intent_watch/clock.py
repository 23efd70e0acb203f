"""Event-loop backed implementation of the Clock protocol."""

from __future__ import annotations

import asyncio
import time
from typing import Callable


class LoopClock:
    """Monotonic time and timers on the running asyncio loop."""

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)
