"""One-shot timer interface shared by everything that counts seconds."""
from __future__ import annotations
from typing import Any, Callable

TICK_MS = 1000   # one countdown step


class TickSource:
    """Schedules one-shot callbacks on the app's single event loop.

    `call_later()` returns an opaque handle; `cancel()` must accept a handle
    whose callback already ran.  Repeating timers re-arm themselves from
    inside the callback, so whoever holds the handle owns the timer.
    """

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        raise NotImplementedError

    def cancel(self, handle: Any) -> None:
        raise NotImplementedError
