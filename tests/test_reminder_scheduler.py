"""Tests for the scheduler state machine, trigger ordering and sleep/wake handling."""
import datetime

import pytest

from conftest import RecordingGateway, make_configs
from reminder_scheduler import ReminderScheduler, SchedulerState
from reminder_settings import ReminderCategory, ReminderConfig, CATEGORY_ORDER

EYES, WATER, STANDUP = ReminderCategory.EYES, ReminderCategory.WATER, ReminderCategory.STANDUP
NOW = datetime.datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def scheduler(gateway):
    return ReminderScheduler(make_configs(), gateway=gateway, clock=lambda: NOW)


def ticks(scheduler, n):
    fired = []
    for _ in range(n):
        fired.extend(scheduler.tick())
    return fired


# ─── State machine ────────────────────────────────────────────

def test_initial_state_is_stopped(scheduler):
    assert scheduler.state is SchedulerState.STOPPED
    assert scheduler.is_stopped and not scheduler.is_running and not scheduler.is_paused


def test_start_pause_resume_stop_cycle(scheduler):
    scheduler.start()
    assert scheduler.is_running
    scheduler.pause()
    assert scheduler.is_paused
    scheduler.start()
    assert scheduler.is_running
    scheduler.stop()
    assert scheduler.is_stopped
    scheduler.start()
    assert scheduler.is_running


def test_start_while_running_keeps_countdown(scheduler):
    scheduler.start()
    ticks(scheduler, 2)
    scheduler.start()
    assert scheduler.timer(EYES).remaining_seconds == 3


def test_pause_only_from_running(scheduler):
    scheduler.pause()
    assert scheduler.is_stopped
    scheduler.start()
    scheduler.pause()
    scheduler.pause()
    assert scheduler.is_paused


def test_stop_is_idempotent(scheduler):
    seen = []
    scheduler.add_state_listener(seen.append)
    scheduler.stop()
    scheduler.start()
    scheduler.stop()
    scheduler.stop()
    assert seen == [SchedulerState.RUNNING, SchedulerState.STOPPED]


def test_stop_from_paused_zeroes_clocks(scheduler):
    scheduler.start()
    ticks(scheduler, 2)
    scheduler.pause()
    scheduler.stop()
    assert all(st["remaining_seconds"] == 0 for st in scheduler.status().values())
    assert ticks(scheduler, 20) == []


def test_resume_only_from_paused(scheduler):
    scheduler.resume()
    assert scheduler.is_stopped
    scheduler.start()
    ticks(scheduler, 1)
    scheduler.pause()
    scheduler.resume()
    assert scheduler.is_running
    assert scheduler.timer(EYES).remaining_seconds == 4


def test_reset_restarts_every_enabled_clock(scheduler):
    scheduler.start()
    ticks(scheduler, 3)
    scheduler.reset()
    assert scheduler.is_running
    assert [scheduler.timer(c).remaining_seconds for c in CATEGORY_ORDER] == [5, 5, 7]


def test_reset_from_paused_restarts_from_full_interval(scheduler):
    scheduler.start()
    ticks(scheduler, 3)
    scheduler.pause()
    scheduler.reset()
    assert scheduler.is_running
    assert scheduler.timer(STANDUP).remaining_seconds == 7


def test_toggle(scheduler):
    scheduler.toggle()
    assert scheduler.is_running
    scheduler.toggle()
    assert scheduler.is_paused
    scheduler.toggle()
    assert scheduler.is_running


# ─── Ticking and triggers ─────────────────────────────────────

def test_ticks_ignored_unless_running(scheduler, gateway):
    assert ticks(scheduler, 10) == []
    scheduler.start()
    scheduler.pause()
    assert ticks(scheduler, 10) == []
    assert gateway.shown == []


def test_single_category_scenario(gateway):
    scheduler = ReminderScheduler(make_configs(eyes=60, water=5, standup=60), gateway=gateway)
    scheduler.start()
    fired = ticks(scheduler, 5)
    assert [e.category for e in fired] == [WATER]
    assert gateway.shown == [WATER]
    assert scheduler.timer(WATER).remaining_seconds == 5


def test_pause_in_the_middle_gives_one_trigger_not_ten(gateway):
    scheduler = ReminderScheduler(make_configs(eyes=60, water=5, standup=60), gateway=gateway)
    scheduler.start()
    ticks(scheduler, 3)
    scheduler.pause()
    assert ticks(scheduler, 10) == []
    assert scheduler.timer(WATER).remaining_seconds == 2
    scheduler.resume()
    fired = ticks(scheduler, 2)
    assert [e.category for e in fired] == [WATER]
    assert gateway.shown == [WATER]
    assert scheduler.timer(WATER).remaining_seconds == 5


def test_simultaneous_triggers_in_category_order(scheduler, gateway):
    scheduler.start()
    fired = ticks(scheduler, 5)
    assert [e.category for e in fired] == [EYES, WATER]
    assert gateway.shown == [EYES, WATER]
    assert fired[0].timestamp == fired[1].timestamp == NOW
    assert scheduler.timer(STANDUP).remaining_seconds == 2


def test_trigger_order_independent_of_interval_values(gateway):
    scheduler = ReminderScheduler(make_configs(eyes=4, water=2, standup=4), gateway=gateway)
    scheduler.start()
    ticks(scheduler, 4)
    assert gateway.shown == [WATER, EYES, WATER, STANDUP]


def test_all_clocks_advance_before_triggers_are_forwarded(scheduler):
    remaining_at_trigger = []
    scheduler.add_trigger_listener(
        lambda e: remaining_at_trigger.append(scheduler.timer(STANDUP).remaining_seconds))
    scheduler.start()
    ticks(scheduler, 5)
    # standup had already moved from 3 to 2 when eyes and water were forwarded
    assert remaining_at_trigger == [2, 2]


def test_trigger_listeners_in_registration_order(scheduler):
    calls = []
    scheduler.add_trigger_listener(lambda e: calls.append(("a", e.category)))
    scheduler.add_trigger_listener(lambda e: calls.append(("b", e.category)))
    scheduler.start()
    ticks(scheduler, 5)
    assert calls == [("a", EYES), ("b", EYES), ("a", WATER), ("b", WATER)]


def test_trigger_does_not_touch_other_clocks(scheduler):
    scheduler.start()
    ticks(scheduler, 5)
    assert scheduler.timer(STANDUP).remaining_seconds == 2
    assert scheduler.timer(EYES).remaining_seconds == 5


def test_disabled_category_never_triggers(gateway):
    scheduler = ReminderScheduler(make_configs(eyes=1, water=1, standup=1, disabled=(WATER,)),
                                  gateway=gateway)
    scheduler.start()
    ticks(scheduler, 50)
    assert WATER not in gateway.shown
    assert gateway.shown.count(EYES) == 50
    assert scheduler.status()[WATER] == {"enabled": False, "remaining_seconds": 0, "formatted": "00:00"}


def test_works_without_gateway():
    scheduler = ReminderScheduler(make_configs(eyes=1))
    scheduler.start()
    assert [e.category for e in scheduler.tick()] == [EYES]


# ─── Config updates ───────────────────────────────────────────

def test_config_update_applies_on_next_start(scheduler):
    scheduler.start()
    ticks(scheduler, 1)
    scheduler.update_configs({EYES: ReminderConfig.create(True, 100, 20)})
    assert scheduler.timer(EYES).remaining_seconds == 4
    scheduler.pause()
    scheduler.start()
    assert scheduler.timer(EYES).remaining_seconds == 4
    scheduler.reset()
    assert scheduler.timer(EYES).remaining_seconds == 100
    assert scheduler.timer(WATER).remaining_seconds == 5


def test_configs_clamped_on_construction():
    scheduler = ReminderScheduler({EYES: ReminderConfig(True, -5, 0)})
    assert scheduler.configs[EYES] == ReminderConfig(True, 1, 1)
    # categories left out fall back to defaults
    assert scheduler.configs[WATER].interval_seconds == 30 * 60


# ─── Status surface ───────────────────────────────────────────

def test_status_reports_every_category(scheduler):
    scheduler.start()
    ticks(scheduler, 1)
    status = scheduler.status()
    assert list(status) == list(CATEGORY_ORDER)
    assert status[STANDUP] == {"enabled": True, "remaining_seconds": 6, "formatted": "00:06"}


def test_timer_view_tracks_clock(scheduler):
    view = scheduler.timer(EYES)
    scheduler.start()
    ticks(scheduler, 2)
    assert view.remaining_seconds == 3
    assert view.category is EYES


# ─── Sleep / wake ─────────────────────────────────────────────

def test_sleep_wake_preserves_remaining_time(scheduler):
    scheduler.start()
    ticks(scheduler, 3)
    before = {c: scheduler.timer(c).remaining_seconds for c in CATEGORY_ORDER}
    scheduler.on_system_will_sleep()
    assert scheduler.is_paused
    assert scheduler.was_running_before_sleep
    ticks(scheduler, 30)
    scheduler.on_system_did_wake()
    assert scheduler.is_running
    assert not scheduler.was_running_before_sleep
    assert {c: scheduler.timer(c).remaining_seconds for c in CATEGORY_ORDER} == before


def test_sleep_while_paused_stays_paused_on_wake(scheduler):
    scheduler.start()
    scheduler.pause()
    scheduler.on_system_will_sleep()
    assert not scheduler.was_running_before_sleep
    scheduler.on_system_did_wake()
    assert scheduler.is_paused


def test_sleep_while_stopped_stays_stopped(scheduler):
    scheduler.on_system_will_sleep()
    scheduler.on_system_did_wake()
    assert scheduler.is_stopped


def test_wake_flag_does_not_survive_to_next_pair(scheduler):
    scheduler.start()
    scheduler.on_system_will_sleep()
    scheduler.on_system_did_wake()
    scheduler.pause()
    # Unrelated pair while the user has things paused
    scheduler.on_system_will_sleep()
    scheduler.on_system_did_wake()
    assert scheduler.is_paused


def test_stop_during_sleep_wins_over_wake(scheduler):
    scheduler.start()
    scheduler.on_system_will_sleep()
    scheduler.stop()
    scheduler.on_system_did_wake()
    assert scheduler.is_stopped
    assert not scheduler.was_running_before_sleep


def test_repeated_sleep_notifications_keep_flag(scheduler):
    scheduler.start()
    scheduler.on_system_will_sleep()
    scheduler.on_system_will_sleep()
    scheduler.on_system_did_wake()
    assert scheduler.is_running


# ─── Tick source ──────────────────────────────────────────────

def test_ticker_drives_clocks_once_per_second(ticker, gateway):
    scheduler = ReminderScheduler(make_configs(), gateway=gateway, ticker=ticker)
    scheduler.start()
    assert ticker.pending == 1
    ticker.advance_seconds(5)
    assert gateway.shown == [EYES, WATER]
    assert ticker.pending == 1


def test_pause_and_stop_leave_no_scheduled_tick(ticker):
    scheduler = ReminderScheduler(make_configs(), ticker=ticker)
    scheduler.start()
    scheduler.pause()
    assert ticker.pending == 0
    scheduler.start()
    assert ticker.pending == 1
    scheduler.stop()
    assert ticker.pending == 0
    ticker.advance_seconds(10)
    assert scheduler.timer(EYES).remaining_seconds == 0


def test_repeated_start_arms_a_single_tick(ticker):
    scheduler = ReminderScheduler(make_configs(), ticker=ticker)
    scheduler.start()
    scheduler.start()
    scheduler.reset()
    assert ticker.pending == 1


def test_listener_stopping_scheduler_halts_ticking(ticker):
    scheduler = ReminderScheduler(make_configs(), ticker=ticker)
    scheduler.add_trigger_listener(lambda e: scheduler.stop())
    scheduler.start()
    ticker.advance_seconds(20)
    assert scheduler.is_stopped
    assert ticker.pending == 0


def test_attach_while_running_arms_tick(ticker):
    scheduler = ReminderScheduler(make_configs())
    scheduler.start()
    scheduler.attach(ticker)
    assert ticker.pending == 1
    ticker.advance_seconds(2)
    assert scheduler.timer(EYES).remaining_seconds == 3


def test_sleep_wake_with_ticker(ticker):
    scheduler = ReminderScheduler(make_configs(), ticker=ticker)
    scheduler.start()
    ticker.advance_seconds(2)
    scheduler.on_system_will_sleep()
    assert ticker.pending == 0
    ticker.advance_seconds(60)
    scheduler.on_system_did_wake()
    assert scheduler.timer(EYES).remaining_seconds == 3
    assert ticker.pending == 1


# ─── Presentation hooks ───────────────────────────────────────

def test_dismiss_reminder_delegates_to_gateway(scheduler, gateway):
    assert scheduler.dismiss_reminder() is True
    assert gateway.dismiss_calls == 1


def test_dismiss_reminder_without_gateway():
    assert ReminderScheduler(make_configs()).dismiss_reminder() is False


def test_acknowledge_dismissal_counts_cycles_without_state_change(scheduler):
    scheduler.start()
    ticks(scheduler, 2)
    scheduler.acknowledge_dismissal(WATER)
    scheduler.acknowledge_dismissal(WATER)
    assert scheduler.completed_cycles[WATER] == 2
    assert scheduler.completed_cycles[EYES] == 0
    assert scheduler.is_running
    assert scheduler.timer(WATER).remaining_seconds == 3


class FailingGateway(RecordingGateway):
    def __init__(self, fail_for):
        super().__init__()
        self.fail_for = fail_for

    def show_reminder(self, category):
        if category is self.fail_for:
            raise RuntimeError("overlay gone")
        super().show_reminder(category)


def test_gateway_failure_does_not_drop_same_tick_triggers(ticker, capsys):
    gateway = FailingGateway(EYES)
    scheduler = ReminderScheduler(make_configs(eyes=2, water=2, standup=5),
                                  gateway=gateway, ticker=ticker)
    seen = []
    scheduler.add_trigger_listener(lambda e: seen.append(e.category))
    scheduler.start()
    ticker.advance_seconds(2)
    assert gateway.shown == [WATER]
    assert seen == [EYES, WATER]
    assert ticker.pending == 1
    assert "[!]" in capsys.readouterr().out
    ticker.advance_seconds(4)
    assert gateway.shown == [WATER, WATER, STANDUP, WATER]
    assert scheduler.timer(STANDUP).remaining_seconds == 4
    assert scheduler.is_running


def test_listener_failure_does_not_stop_other_listeners_or_ticking(ticker, gateway):
    scheduler = ReminderScheduler(make_configs(), gateway=gateway, ticker=ticker)
    seen = []

    def broken(event):
        raise ValueError("boom")

    scheduler.add_trigger_listener(broken)
    scheduler.add_trigger_listener(lambda e: seen.append(e.category))
    scheduler.start()
    ticker.advance_seconds(5)
    assert seen == [EYES, WATER]
    assert gateway.shown == [EYES, WATER]
    assert ticker.pending == 1
    ticker.advance_seconds(2)
    assert seen == [EYES, WATER, STANDUP]
