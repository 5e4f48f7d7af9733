"""
Reminder categories and the persisted settings file.

The scheduler never reads this file itself: `resolve_configs()` turns the
stored dict (intervals in minutes) into one clamped `ReminderConfig` per
category (intervals in seconds) and that is all the core ever sees.
"""
from __future__ import annotations
import os, json, math
import enum
from typing import Any, NamedTuple, Optional

# ─── Categories ───────────────────────────────────────────────
class ReminderCategory(enum.Enum):
    EYES = "eyes"
    WATER = "water"
    STANDUP = "standup"

    @property
    def info(self) -> dict[str, Any]:
        return CATEGORY_INFO[self]

    @property
    def title(self) -> str:
        return CATEGORY_INFO[self]["title"]

    @property
    def label(self) -> str:
        return CATEGORY_INFO[self]["label"]


# Triggers raised in the same tick are delivered in this order.
CATEGORY_ORDER = (ReminderCategory.EYES, ReminderCategory.WATER, ReminderCategory.STANDUP)

CATEGORY_INFO = {
    ReminderCategory.EYES: {
        "label": "Eyes", "icon": "👁", "color": "#22d3ee",
        "title": "Time to Rest Your Eyes",
        "subtitle": "Look at something 20 feet away",
        "helper": "Give your eyes a break",
        "default_interval": 20,
    },
    ReminderCategory.WATER: {
        "label": "Water", "icon": "💧", "color": "#3b82f6",
        "title": "Time to Drink Water",
        "subtitle": "Stay hydrated for better health",
        "helper": "Keep your body hydrated",
        "default_interval": 30,
    },
    ReminderCategory.STANDUP: {
        "label": "Stand Up", "icon": "🧍", "color": "#22c55e",
        "title": "Time to Stand Up",
        "subtitle": "Stretch and move around",
        "helper": "Improve your circulation",
        "default_interval": 45,
    },
}

# ─── Resolved config ──────────────────────────────────────────
MIN_SECONDS = 1

class ReminderConfig(NamedTuple):
    enabled: bool
    interval_seconds: int
    display_duration_seconds: int

    @classmethod
    def create(cls, enabled: bool = True, interval_seconds: Any = 60,
               display_duration_seconds: Any = 20) -> "ReminderConfig":
        """Build a config, clamping non-positive numbers to MIN_SECONDS."""
        return cls(bool(enabled),
                   _clamp_seconds(interval_seconds),
                   _clamp_seconds(display_duration_seconds))

    def clamped(self) -> "ReminderConfig":
        return ReminderConfig.create(*self)


def _clamp_seconds(value: Any) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError, OverflowError):
        return MIN_SECONDS
    return max(MIN_SECONDS, n)

# ─── Config file ──────────────────────────────────────────────
CONFIG_FILE = os.path.join(os.path.expanduser("~"), "health_reminder_config.json")

DISPLAY_STYLES = ("modern", "minimal", "bold")
DEFAULT_DURATION_SECONDS = 20

# Short second-based intervals used by --test
TEST_INTERVALS = {
    ReminderCategory.EYES: 20,
    ReminderCategory.WATER: 30,
    ReminderCategory.STANDUP: 45,
}

DEFAULT_CONFIG = {
    "reminders": {
        cat.value: {
            "enabled": True,
            "interval_minutes": CATEGORY_INFO[cat]["default_interval"],
            "duration_seconds": DEFAULT_DURATION_SECONDS,
        }
        for cat in CATEGORY_ORDER
    },
    "display_style": "modern",        # modern, minimal, bold
    "force_focus_mode": False,        # Reminder can't be dismissed before its countdown ends
    "auto_start": True,               # Start all reminders on launch
}

def default_config() -> dict[str, Any]:
    return json.loads(json.dumps(DEFAULT_CONFIG))

def load_config(path: Optional[str] = None) -> dict[str, Any]:
    """Load config from file, falling back to defaults for missing/invalid values."""
    path = path or CONFIG_FILE
    cfg = default_config()
    user_cfg = None
    if os.path.exists(path):
        try:
            with open(path, encoding="utf-8") as f:
                user_cfg = json.load(f)
        except (json.JSONDecodeError, IOError, OSError) as e:
            print(f"  [!] Config load error: {e}. Using defaults.")

    if isinstance(user_cfg, dict):
        saved = user_cfg.get("reminders")
        if isinstance(saved, dict):
            for cat in CATEGORY_ORDER:
                if isinstance(saved.get(cat.value), dict):
                    cfg["reminders"][cat.value].update(saved[cat.value])
        for key in ("display_style", "force_focus_mode", "auto_start"):
            if key in user_cfg:
                cfg[key] = user_cfg[key]

    # Validate fields
    for cat in CATEGORY_ORDER:
        entry = cfg["reminders"][cat.value]
        if not isinstance(entry.get("enabled"), bool):
            entry["enabled"] = True
        for key, default in [("interval_minutes", CATEGORY_INFO[cat]["default_interval"]),
                             ("duration_seconds", DEFAULT_DURATION_SECONDS)]:
            value = entry.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                entry[key] = default
    if cfg.get("display_style") not in DISPLAY_STYLES:
        cfg["display_style"] = "modern"
    for key in ("force_focus_mode", "auto_start"):
        if not isinstance(cfg.get(key), bool):
            cfg[key] = DEFAULT_CONFIG[key]

    return cfg

def save_config(cfg: dict[str, Any], path: Optional[str] = None) -> None:
    """Save config to file."""
    try:
        with open(path or CONFIG_FILE, "w", encoding="utf-8") as f:
            json.dump(cfg, f, indent=2)
    except (IOError, OSError) as e:
        print(f"  [!] Config save error: {e}")

def resolve_configs(cfg: dict[str, Any], test_mode: bool = False) -> dict[ReminderCategory, ReminderConfig]:
    """Turn the persisted settings into one clamped ReminderConfig per category."""
    reminders = cfg.get("reminders", {})
    resolved = {}
    for cat in CATEGORY_ORDER:
        entry = reminders.get(cat.value) or DEFAULT_CONFIG["reminders"][cat.value]
        if test_mode:
            interval = TEST_INTERVALS[cat]
        else:
            try:
                interval = round(float(entry.get("interval_minutes", 0)) * 60)
            except (TypeError, ValueError, OverflowError):
                interval = CATEGORY_INFO[cat]["default_interval"] * 60
        resolved[cat] = ReminderConfig.create(
            entry.get("enabled", True), interval,
            entry.get("duration_seconds", DEFAULT_DURATION_SECONDS))
    return resolved

def set_reminder_settings(cfg: dict[str, Any], category: ReminderCategory, enabled: bool,
                          interval_minutes: int, duration_seconds: int) -> None:
    cfg.setdefault("reminders", {})[category.value] = {
        "enabled": bool(enabled),
        "interval_minutes": interval_minutes,
        "duration_seconds": duration_seconds,
    }
