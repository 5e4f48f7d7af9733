import pytest

from presentation import OverlayView
from reminder_settings import ReminderCategory, ReminderConfig, CATEGORY_ORDER
from tick_source import TickSource


class ManualTickSource(TickSource):
    """Fake event loop: callbacks run only when the test advances time."""

    def __init__(self):
        self.now_ms = 0
        self._pending = {}
        self._next_id = 0

    def call_later(self, delay_ms, callback):
        self._next_id += 1
        self._pending[self._next_id] = (self.now_ms + delay_ms, callback)
        return self._next_id

    def cancel(self, handle):
        self._pending.pop(handle, None)

    @property
    def pending(self):
        return len(self._pending)

    def advance(self, ms):
        target = self.now_ms + ms
        while True:
            due = [(at, hid) for hid, (at, _) in self._pending.items() if at <= target]
            if not due:
                break
            at, hid = min(due)
            _, callback = self._pending.pop(hid)
            self.now_ms = at
            callback()
        self.now_ms = target

    def advance_seconds(self, n):
        self.advance(n * 1000)


class RecordingGateway:
    def __init__(self):
        self.shown = []
        self.dismiss_calls = 0

    def show_reminder(self, category):
        self.shown.append(category)

    def dismiss_current(self):
        self.dismiss_calls += 1
        return True


class RecordingView(OverlayView):
    def __init__(self):
        self.calls = []
        self.visible = None

    def show(self, category, duration, style, can_dismiss):
        self.calls.append(("show", category, duration, style, can_dismiss))
        self.visible = category

    def update(self, remaining, can_dismiss):
        self.calls.append(("update", remaining, can_dismiss))

    def hide(self):
        self.calls.append(("hide",))
        self.visible = None


def make_configs(eyes=5, water=5, standup=7, duration=3, disabled=()):
    intervals = {
        ReminderCategory.EYES: eyes,
        ReminderCategory.WATER: water,
        ReminderCategory.STANDUP: standup,
    }
    return {
        cat: ReminderConfig.create(cat not in disabled, intervals[cat], duration)
        for cat in CATEGORY_ORDER
    }


@pytest.fixture
def ticker():
    return ManualTickSource()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def view():
    return RecordingView()
