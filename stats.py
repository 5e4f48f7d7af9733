"""Reminder statistics: how many reminders ran their full course or were cut short."""
from __future__ import annotations
import os, json
import datetime
from typing import Any, Optional

from reminder_settings import ReminderCategory, CATEGORY_ORDER

STATS_FILE = os.path.join(os.path.expanduser("~"), "health_reminder_stats.json")
HISTORY_DAYS = 7

def _counters() -> dict[str, dict[str, int]]:
    return {cat.value: {"completed": 0, "skipped": 0} for cat in CATEGORY_ORDER}

DEFAULT_STATS = {
    "lifetime": _counters(),
    "today": {"date": None, **_counters()},
    "streak_days": 0,
    "last_active_date": None,
    "daily_history": [],  # Last 7 days: [{"date": "YYYY-MM-DD", "eyes": N, "water": N, "standup": N}, ...]
}

def load_stats(path: Optional[str] = None) -> dict[str, Any]:
    """Load statistics from file."""
    stats = json.loads(json.dumps(DEFAULT_STATS))
    path = path or STATS_FILE
    if os.path.exists(path):
        try:
            with open(path, encoding="utf-8") as f:
                saved = json.load(f)
            if isinstance(saved, dict):
                # Deep merge
                for key in ["lifetime", "today"]:
                    section = saved.get(key)
                    if not isinstance(section, dict):
                        continue
                    for name, value in section.items():
                        if isinstance(value, dict) and isinstance(stats[key].get(name), dict):
                            stats[key][name].update(value)
                        elif name == "date":
                            stats[key][name] = value
                for key in ["streak_days", "last_active_date", "daily_history"]:
                    if key in saved:
                        stats[key] = saved[key]
        except (json.JSONDecodeError, IOError, OSError) as e:
            print(f"  [!] Stats load error: {e}")
    return stats

def save_stats(stats: dict[str, Any], path: Optional[str] = None) -> None:
    """Save statistics to file."""
    try:
        with open(path or STATS_FILE, "w", encoding="utf-8") as f:
            json.dump(stats, f, indent=2)
    except (IOError, OSError) as e:
        print(f"  [!] Stats save error: {e}")

def update_stats_for_today(stats: dict[str, Any], today: Optional[datetime.date] = None) -> None:
    """Roll today's counters over if the date changed, and update the streak."""
    today = today or datetime.date.today()
    today_s = today.isoformat()
    if stats["today"].get("date") != today_s:
        # Archive previous day's completed counts to daily_history
        prev_date = stats["today"].get("date")
        done = {cat.value: stats["today"].get(cat.value, {}).get("completed", 0)
                for cat in CATEGORY_ORDER}
        if prev_date and any(done.values()):
            stats.setdefault("daily_history", []).append({"date": prev_date, **done})
            stats["daily_history"] = stats["daily_history"][-HISTORY_DAYS:]

        yesterday = (today - datetime.timedelta(days=1)).isoformat()
        if stats.get("last_active_date") == yesterday:
            stats["streak_days"] = stats.get("streak_days", 0) + 1
        elif stats.get("last_active_date") != today_s:
            stats["streak_days"] = 1
        stats["today"] = {"date": today_s, **_counters()}
    stats["last_active_date"] = today_s

def record_reminder(stats: dict[str, Any], category: ReminderCategory, completed: bool,
                    today: Optional[datetime.date] = None) -> None:
    update_stats_for_today(stats, today)
    key = "completed" if completed else "skipped"
    for section in (stats["lifetime"], stats["today"]):
        counts = section.setdefault(category.value, {"completed": 0, "skipped": 0})
        counts[key] = counts.get(key, 0) + 1
