"""
Sleep/wake coordination.

Hosts that receive real power notifications call on_system_will_sleep() /
on_system_did_wake() directly, and only then are the clocks paused before
the machine suspends.

Everywhere else the monitor polls the wall clock.  The event loop does not
run while the machine is suspended, so a poll that arrives far later than
scheduled means we slept through the gap.  That is only noticed after the
wake: the sleep/wake pair is reported back to back, nothing is subtracted
from the clocks, and the net effect on a running scheduler is that its
next tick is re-timed from the moment of detection.  A wall clock set
forward by more than the gap looks the same and is handled the same way.
"""
from __future__ import annotations
import time
from typing import Any, Callable, Optional

from tick_source import TickSource

POLL_MS = 5000              # Wall-clock check every 5 seconds
SLEEP_GAP_SECONDS = 30      # A longer gap between polls means the system slept


class PowerStateMonitor:

    def __init__(self, scheduler: Any, ticker: Optional[TickSource] = None,
                 clock: Callable[[], float] = time.time,
                 poll_ms: int = POLL_MS, gap_seconds: float = SLEEP_GAP_SECONDS):
        self.scheduler = scheduler
        self._ticker = ticker
        self._clock = clock
        self.poll_ms = poll_ms
        self.gap_seconds = gap_seconds
        self._handle = None
        self._last_seen: Optional[float] = None
        self.asleep = False
        self.sleep_count = 0

    # ━━━ Notifications ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def on_system_will_sleep(self) -> None:
        self.asleep = True
        self.sleep_count += 1
        self.scheduler.on_system_will_sleep()

    def on_system_did_wake(self) -> None:
        self.asleep = False
        self._last_seen = self._clock()
        self.scheduler.on_system_did_wake()

    # ━━━ Gap detection ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def check(self) -> bool:
        """Compare the wall clock against the previous check; True if a wake was detected.

        Remaining times are left as they were when the loop stopped running.
        """
        now = self._clock()
        last, self._last_seen = self._last_seen, now
        if last is None:
            return False
        gap = now - last
        if gap < 0:
            # System clock was set back; just take the new baseline
            return False
        if gap > self.gap_seconds:
            print(f"  [!] Wake detected: no poll for ~{int(gap)}s, re-timing reminders")
            self.on_system_will_sleep()
            self.on_system_did_wake()
            return True
        return False

    def start(self) -> None:
        self._last_seen = self._clock()
        self._arm()

    def stop(self) -> None:
        if self._handle is not None:
            self._ticker.cancel(self._handle)
            self._handle = None

    def _arm(self) -> None:
        if self._ticker is not None and self._handle is None:
            self._handle = self._ticker.call_later(self.poll_ms, self._poll)

    def _poll(self) -> None:
        self._handle = None
        self.check()
        self._arm()
