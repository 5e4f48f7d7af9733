"""
Presentation gateway: turns trigger events into an on-screen reminder.

One reminder is visible at a time.  Triggers that arrive while a reminder
is up wait in arrival order; a category already showing or waiting is not
queued again.  Each visible reminder has its own display countdown on a
separate tick handle, unrelated to the interval clocks.
"""
from __future__ import annotations
import collections
from typing import Callable, Optional

from reminder_settings import (ReminderCategory, ReminderConfig, DISPLAY_STYLES,
                               DEFAULT_DURATION_SECONDS, MIN_SECONDS)
from tick_source import TickSource, TICK_MS


class OverlayView:
    """What the gateway drives.  The tk overlay implements this."""

    def show(self, category: ReminderCategory, duration: int, style: str, can_dismiss: bool) -> None:
        raise NotImplementedError

    def update(self, remaining: int, can_dismiss: bool) -> None:
        raise NotImplementedError

    def hide(self) -> None:
        raise NotImplementedError


class ActiveReminder:
    __slots__ = ("category", "duration", "remaining", "preview")

    def __init__(self, category: ReminderCategory, duration: int, preview: bool = False):
        self.category = category
        self.duration = duration
        self.remaining = duration
        self.preview = preview

    def __repr__(self) -> str:
        kind = "preview" if self.preview else "reminder"
        return f"<ActiveReminder {self.category.value} {kind} {self.remaining}/{self.duration}s>"


class PresentationGateway:

    def __init__(self, view: OverlayView, ticker: TickSource,
                 configs: Optional[dict[ReminderCategory, ReminderConfig]] = None,
                 display_style: str = "modern", force_focus_mode: bool = False):
        self.view = view
        self._ticker = ticker
        self._configs = dict(configs or {})
        self.display_style = display_style if display_style in DISPLAY_STYLES else "modern"
        self.force_focus_mode = force_focus_mode
        self.current: Optional[ActiveReminder] = None
        self._queue: collections.deque[ReminderCategory] = collections.deque()
        self._handle = None
        self._dismiss_listeners: list[Callable[[ReminderCategory, bool, bool], None]] = []

    # ━━━ Settings ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def update_configs(self, configs: dict[ReminderCategory, ReminderConfig]) -> None:
        self._configs.update(configs)

    def set_display_style(self, style: str) -> None:
        if style in DISPLAY_STYLES:
            self.display_style = style

    def set_force_focus_mode(self, flag: bool) -> None:
        self.force_focus_mode = bool(flag)

    def add_dismiss_listener(self, fn: Callable[[ReminderCategory, bool, bool], None]) -> None:
        """fn(category, completed, preview) runs after every dismissal."""
        self._dismiss_listeners.append(fn)

    def duration_for(self, category: ReminderCategory) -> int:
        cfg = self._configs.get(category)
        return cfg.display_duration_seconds if cfg else DEFAULT_DURATION_SECONDS

    # ━━━ Showing ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    @property
    def pending(self) -> list[ReminderCategory]:
        return list(self._queue)

    @property
    def can_dismiss(self) -> bool:
        if self.current is None:
            return False
        return not self.force_focus_mode or self.current.remaining <= 0

    def show_reminder(self, category: ReminderCategory) -> None:
        """Queue a reminder for display.  Returns immediately."""
        if self.current is not None and self.current.category is category and not self.current.preview:
            return
        if category in self._queue:
            return
        self._queue.append(category)
        if self.current is None:
            self._show_next()

    def preview(self, category: ReminderCategory, duration_seconds: Optional[int] = None) -> None:
        """Show a reminder right away, outside the real schedule."""
        if self.current is not None:
            if not self.current.preview and self.current.category not in self._queue:
                # Put the interrupted reminder back at the front
                self._queue.appendleft(self.current.category)
            self._close(completed=False, notify=False, advance=False)
        duration = self.duration_for(category) if duration_seconds is None else duration_seconds
        self._present(ActiveReminder(category, max(MIN_SECONDS, int(duration)), preview=True))

    def _show_next(self) -> None:
        if not self._queue:
            return
        category = self._queue.popleft()
        self._present(ActiveReminder(category, self.duration_for(category)))

    def _present(self, active: ActiveReminder) -> None:
        self.current = active
        self.view.show(active.category, active.duration, self.display_style, self.can_dismiss)
        self._arm()

    # ━━━ Display countdown ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def _arm(self) -> None:
        if self._handle is None:
            self._handle = self._ticker.call_later(TICK_MS, self._countdown)

    def _disarm(self) -> None:
        if self._handle is not None:
            self._ticker.cancel(self._handle)
            self._handle = None

    def _countdown(self) -> None:
        self._handle = None
        if self.current is None:
            return
        self.current.remaining -= 1
        if self.current.remaining <= 0:
            self._close(completed=True)
            return
        self.view.update(self.current.remaining, self.can_dismiss)
        self._arm()

    # ━━━ Dismissal ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def dismiss_current(self) -> bool:
        """User dismissal.  Refused while focus mode holds the reminder on screen."""
        if self.current is None or not self.can_dismiss:
            return False
        self._close(completed=False)
        return True

    def clear(self) -> None:
        """Drop the visible reminder and everything queued, without notifying."""
        self._queue.clear()
        if self.current is not None:
            self._close(completed=False, notify=False)

    def _close(self, completed: bool, notify: bool = True, advance: bool = True) -> None:
        active, self.current = self.current, None
        self._disarm()
        self.view.hide()
        if notify and active is not None:
            for fn in list(self._dismiss_listeners):
                fn(active.category, completed, active.preview)
        if advance and self.current is None:
            self._show_next()
