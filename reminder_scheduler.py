"""
Reminder scheduler: one clock per category behind a single
Stopped / Running / Paused state machine.

All calls happen on the app's event loop thread.  While Running the
scheduler keeps exactly one tick armed on its TickSource; pause() and
stop() cancel it, so nothing fires after either returns.

The overlay's display countdown is not part of this: interval clocks keep
counting while a reminder is on screen.
"""
from __future__ import annotations
import datetime
import enum
from typing import Any, Callable, Optional

from reminder_settings import (ReminderCategory, ReminderConfig, CATEGORY_ORDER,
                               DEFAULT_CONFIG, resolve_configs)
from reminder_clock import ReminderClock, ClockView, TriggerEvent
from tick_source import TickSource, TICK_MS


class SchedulerState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class ReminderScheduler:

    def __init__(self, configs: Optional[dict[ReminderCategory, ReminderConfig]] = None,
                 gateway: Any = None, ticker: Optional[TickSource] = None,
                 clock: Callable[[], datetime.datetime] = datetime.datetime.now):
        self._configs = self._complete(configs or {})
        self._clocks = {cat: ReminderClock(cat, self._configs[cat]) for cat in CATEGORY_ORDER}
        self._state = SchedulerState.STOPPED
        self._gateway = gateway
        self._ticker = ticker
        self._tick_handle = None
        self._now = clock
        self._trigger_listeners: list[Callable[[TriggerEvent], None]] = []
        self._state_listeners: list[Callable[[SchedulerState], None]] = []
        self._was_running_before_sleep = False
        self.completed_cycles = {cat: 0 for cat in CATEGORY_ORDER}

    @staticmethod
    def _complete(configs: dict[ReminderCategory, ReminderConfig]) -> dict[ReminderCategory, ReminderConfig]:
        defaults = resolve_configs(DEFAULT_CONFIG)
        return {cat: configs.get(cat, defaults[cat]).clamped() for cat in CATEGORY_ORDER}

    # ━━━ Wiring ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def attach(self, ticker: TickSource) -> None:
        """Bind the tick source; arms it right away if already Running."""
        self._disarm()
        self._ticker = ticker
        if self._state is SchedulerState.RUNNING:
            self._arm()

    def set_gateway(self, gateway: Any) -> None:
        self._gateway = gateway

    def add_trigger_listener(self, fn: Callable[[TriggerEvent], None]) -> None:
        self._trigger_listeners.append(fn)

    def add_state_listener(self, fn: Callable[[SchedulerState], None]) -> None:
        self._state_listeners.append(fn)

    def update_configs(self, configs: dict[ReminderCategory, ReminderConfig]) -> None:
        """Replace the config set; takes effect on the next start from Stopped or reset()."""
        merged = dict(self._configs)
        merged.update(configs)
        self._configs = self._complete(merged)

    @property
    def configs(self) -> dict[ReminderCategory, ReminderConfig]:
        return dict(self._configs)

    # ━━━ State ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    @property
    def is_paused(self) -> bool:
        return self._state is SchedulerState.PAUSED

    @property
    def is_stopped(self) -> bool:
        return self._state is SchedulerState.STOPPED

    def _set_state(self, state: SchedulerState) -> None:
        if state is self._state:
            return
        self._state = state
        for fn in list(self._state_listeners):
            fn(state)

    # ━━━ Operations ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def start(self) -> None:
        if self._state is SchedulerState.RUNNING:
            return
        if self._state is SchedulerState.PAUSED:
            for cat in CATEGORY_ORDER:
                self._clocks[cat].resume()
        else:
            for cat in CATEGORY_ORDER:
                self._clocks[cat].start(self._configs[cat])
        self._arm()
        self._set_state(SchedulerState.RUNNING)

    def resume(self) -> None:
        if self._state is SchedulerState.PAUSED:
            self.start()

    def pause(self) -> None:
        if self._state is not SchedulerState.RUNNING:
            return
        self._disarm()
        for cat in CATEGORY_ORDER:
            self._clocks[cat].pause()
        self._set_state(SchedulerState.PAUSED)

    def stop(self) -> None:
        self._disarm()
        for cat in CATEGORY_ORDER:
            self._clocks[cat].stop()
        self._set_state(SchedulerState.STOPPED)

    def reset(self) -> None:
        """Discard the current countdowns and restart every enabled clock."""
        self.stop()
        self.start()

    def toggle(self) -> None:
        """Tray-menu helper: Running pauses, anything else starts."""
        if self._state is SchedulerState.RUNNING:
            self.pause()
        else:
            self.start()

    # ━━━ Ticking ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def tick(self, now: Optional[datetime.datetime] = None) -> list[TriggerEvent]:
        """Advance every clock one second, then forward whatever fired."""
        if self._state is not SchedulerState.RUNNING:
            return []
        now = now or self._now()
        fired = []
        for cat in CATEGORY_ORDER:
            event = self._clocks[cat].tick(now)
            if event is not None:
                fired.append(event)
        for event in fired:
            self._on_trigger(event)
        return fired

    def _on_trigger(self, event: TriggerEvent) -> None:
        # A failing forward is reported and the remaining forwards still run
        if self._gateway is not None:
            try:
                self._gateway.show_reminder(event.category)
            except Exception as e:
                print(f"  [!] Could not show {event.category.label} reminder: {e}")
        for fn in list(self._trigger_listeners):
            try:
                fn(event)
            except Exception as e:
                print(f"  [!] Trigger listener failed for {event.category.label}: {e}")

    def _arm(self) -> None:
        if self._ticker is not None and self._tick_handle is None:
            self._tick_handle = self._ticker.call_later(TICK_MS, self._on_tick)

    def _disarm(self) -> None:
        if self._tick_handle is not None:
            self._ticker.cancel(self._tick_handle)
            self._tick_handle = None

    def _on_tick(self) -> None:
        self._tick_handle = None
        try:
            self.tick()
        finally:
            # A trigger listener may have paused or stopped us
            if self._state is SchedulerState.RUNNING:
                self._arm()

    # ━━━ Sleep / wake ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def on_system_will_sleep(self) -> None:
        if self._state is SchedulerState.RUNNING:
            self._was_running_before_sleep = True
            self.pause()

    def on_system_did_wake(self) -> None:
        if self._was_running_before_sleep:
            self.resume()
        self._was_running_before_sleep = False

    @property
    def was_running_before_sleep(self) -> bool:
        return self._was_running_before_sleep

    # ━━━ Presentation ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def dismiss_reminder(self) -> bool:
        if self._gateway is None:
            return False
        return self._gateway.dismiss_current()

    def acknowledge_dismissal(self, category: ReminderCategory) -> None:
        self.completed_cycles[category] += 1

    # ━━━ Status ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def timer(self, category: ReminderCategory) -> ClockView:
        return ClockView(self._clocks[category])

    def status(self) -> dict[ReminderCategory, dict[str, Any]]:
        return {
            cat: {
                "enabled": self._clocks[cat].enabled,
                "remaining_seconds": self._clocks[cat].remaining_seconds,
                "formatted": self._clocks[cat].format_remaining(),
            }
            for cat in CATEGORY_ORDER
        }

    def __repr__(self) -> str:
        return f"<ReminderScheduler {self._state.value}>"
