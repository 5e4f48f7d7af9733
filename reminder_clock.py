"""Per-category countdown clock."""
from __future__ import annotations
import datetime
from typing import NamedTuple, Optional

from reminder_settings import ReminderCategory, ReminderConfig, MIN_SECONDS


class TriggerEvent(NamedTuple):
    category: ReminderCategory
    timestamp: datetime.datetime


def format_mm_ss(sec: int) -> str:
    m, s = divmod(max(0, int(sec)), 60)
    return f"{m:02d}:{s:02d}"


class ReminderClock:
    """Counts one category's interval down, one tick per second.

    The clock re-arms itself on the tick that reaches zero, so it keeps
    cycling until `stop()`.  It never schedules its own ticks; the owner
    calls `tick()`.
    """

    def __init__(self, category: ReminderCategory, config: Optional[ReminderConfig] = None):
        self.category = category
        self.enabled = bool(config.enabled) if config else False
        self.interval_seconds = max(MIN_SECONDS, int(config.interval_seconds)) if config else 0
        self.remaining_seconds = 0
        self._running = False
        self._paused = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def paused(self) -> bool:
        return self._paused

    def start(self, config: ReminderConfig) -> None:
        self.enabled = bool(config.enabled)
        self.interval_seconds = max(MIN_SECONDS, int(config.interval_seconds))
        self._paused = False
        if not self.enabled:
            # Idle: never decrements, never emits
            self._running = False
            self.remaining_seconds = 0
            return
        self.remaining_seconds = self.interval_seconds
        self._running = True

    def tick(self, now: Optional[datetime.datetime] = None) -> Optional[TriggerEvent]:
        """Advance one second; return the trigger if the interval just elapsed."""
        if not self._running:
            return None
        if self.remaining_seconds > 0:
            self.remaining_seconds -= 1
        if self.remaining_seconds > 0:
            return None
        self.remaining_seconds = self.interval_seconds
        return TriggerEvent(self.category, now or datetime.datetime.now())

    def pause(self) -> None:
        if self._running:
            self._running = False
            self._paused = True

    def resume(self) -> None:
        if self._paused:
            self._paused = False
            self._running = True

    def stop(self) -> None:
        self._running = False
        self._paused = False
        self.remaining_seconds = 0

    def format_remaining(self) -> str:
        return format_mm_ss(self.remaining_seconds)

    def __repr__(self) -> str:
        state = "running" if self._running else "paused" if self._paused else "idle"
        return f"<ReminderClock {self.category.value} {self.format_remaining()} {state}>"


class ClockView:
    """Read-only window onto a ReminderClock, for status displays."""
    __slots__ = ("_clock",)

    def __init__(self, clock: ReminderClock):
        self._clock = clock

    @property
    def category(self) -> ReminderCategory:
        return self._clock.category

    @property
    def enabled(self) -> bool:
        return self._clock.enabled

    @property
    def running(self) -> bool:
        return self._clock.running

    @property
    def interval_seconds(self) -> int:
        return self._clock.interval_seconds

    @property
    def remaining_seconds(self) -> int:
        return self._clock.remaining_seconds

    def format_remaining(self) -> str:
        return self._clock.format_remaining()

    def __repr__(self) -> str:
        return f"<ClockView {self._clock!r}>"
