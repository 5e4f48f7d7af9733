#!/usr/bin/env python3
"""
Health Reminder — Eyes, Water, Stand Up
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

Tray app that reminds you to rest your eyes, drink water and stand up,
each on its own interval.

Features:
  - Three independent reminders with their own interval and display time
  - Start / pause / stop / reset all reminders from the tray
  - Countdowns freeze across system sleep and pick up where they left off
  - Modern, minimal and bold reminder styles, with an optional focus mode
  - Preview any reminder from the settings window
  - All settings editable live and persist between sessions

Usage:
    python health_reminder.py
    python health_reminder.py --test   (short intervals for testing)
    pythonw health_reminder.py         (Windows — no console)
"""
from __future__ import annotations
import sys, platform
import argparse

# ─── tkinter check ────────────────────────────────────────────
try:
    import tkinter as tk
except ImportError:
    _s = platform.system()
    print("Error: tkinter is required.")
    if _s == "Darwin":
        print("  brew install python-tk@3.12  (or use python.org installer)")
    elif _s == "Linux":
        print("  sudo apt install python3-tk")
    sys.exit(1)

# ─── Imports ──────────────────────────────────────────────────
import threading
from typing import Any, Callable, Optional

from PIL import Image

try:
    import pystray
    HAS_TRAY = True
except ImportError:
    # No usable tray backend on this desktop; the settings window stays reachable
    HAS_TRAY = False

from app_icon import create_icon
from power_monitor import PowerStateMonitor
from presentation import OverlayView, PresentationGateway
from reminder_clock import format_mm_ss
from reminder_scheduler import ReminderScheduler, SchedulerState
from reminder_settings import (ReminderCategory, CATEGORY_ORDER, CATEGORY_INFO, DISPLAY_STYLES,
                               load_config, save_config, resolve_configs, set_reminder_settings)
from stats import load_stats, save_stats, update_stats_for_today, record_reminder
from tick_source import TickSource

# ─── Platform ────────────────────────────────────────────────
IS_MAC = platform.system() == "Darwin"
IS_WIN = platform.system() == "Windows"
FONT = "Helvetica Neue" if IS_MAC else "Segoe UI" if IS_WIN else "DejaVu Sans"
MONO = "Menlo" if IS_MAC else "Consolas" if IS_WIN else "DejaVu Sans Mono"

# ─── Named Constants ─────────────────────────────────────────
STATUS_REFRESH_MS = 1000           # Settings window countdown refresh
MINIMAL_CARD_SIZE = (360, 170)     # Minimal style card, top-right corner
MINIMAL_CARD_MARGIN = 18
SAVE_FEEDBACK_MS = 4000

# ─── Colours ──────────────────────────────────────────────────
C_BG       = "#111827";  C_CARD     = "#1e293b";  C_CARD_IN  = "#253349"
C_BTN_PRI  = "#1d4ed8";  C_BTN_SEC  = "#334155"
C_TEXT     = "#f1f5f9";  C_TEXT_DIM = "#94a3b8";  C_TEXT_MUT = "#64748b"
C_OV_BG    = "#0c1222";  C_CD       = "#fbbf24"
C_OK       = "#22c55e";  C_ERR      = "#ef4444"


# ─── Tk plumbing ─────────────────────────────────────────────
class TkTickSource(TickSource):
    """Timers on the tk event loop (widget.after)."""

    def __init__(self, widget: tk.Misc):
        self.widget = widget

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        return self.widget.after(delay_ms, callback)

    def cancel(self, handle: Any) -> None:
        try:
            self.widget.after_cancel(handle)
        except (tk.TclError, ValueError):
            pass


class TkOverlayView(OverlayView):
    """Reminder window.  modern/bold cover the screen, minimal is a corner card."""

    def __init__(self, root: tk.Tk, on_dismiss: Optional[Callable[[], Any]] = None):
        self.root = root
        self.on_dismiss = on_dismiss
        self.win: Optional[tk.Toplevel] = None
        self._cd_var: Optional[tk.StringVar] = None
        self._btn: Optional[tk.Button] = None
        self._bar: Optional[tk.Canvas] = None
        self._duration = 1
        self._accent = C_CD
        self._bg = C_OV_BG

    def show(self, category: ReminderCategory, duration: int, style: str, can_dismiss: bool) -> None:
        self.hide()
        info = CATEGORY_INFO[category]
        self._duration = max(1, duration)
        self._accent = info["color"]
        self._bg = info["color"] if style == "bold" else C_OV_BG
        fg = C_BG if style == "bold" else C_TEXT

        ov = tk.Toplevel(self.root)
        ov.overrideredirect(True);  ov.attributes("-topmost", True)
        ov.configure(bg=self._bg)
        if style == "minimal":
            w, h = MINIMAL_CARD_SIZE
            sw = ov.winfo_screenwidth()
            ov.geometry(f"{w}x{h}+{sw - w - MINIMAL_CARD_MARGIN}+{MINIMAL_CARD_MARGIN}")
            try:
                ov.attributes("-alpha", 0.95)
            except tk.TclError:
                pass
        else:
            sw, sh = ov.winfo_screenwidth(), ov.winfo_screenheight()
            ov.geometry(f"{sw}x{sh}+0+0")
            try:
                ov.attributes("-alpha", 0.94)
            except tk.TclError:
                pass
        ov.lift()

        cf = tk.Frame(ov, bg=self._bg)
        cf.place(relx=0.5, rely=0.5, anchor="center")
        big = style != "minimal"

        if big:
            tk.Label(cf, text=info["icon"], font=(FONT, 56), fg=self._accent if style != "bold" else fg,
                     bg=self._bg).pack(pady=(0, 16))
        tk.Label(cf, text=info["title"], font=(FONT, 28 if big else 13, "bold"),
                 fg=fg if style == "bold" else self._accent, bg=self._bg).pack()
        tk.Label(cf, text=info["subtitle"], font=(FONT, 14 if big else 9), fg=fg if style == "bold" else C_TEXT_DIM,
                 bg=self._bg).pack(pady=(4, 2))
        if big:
            tk.Label(cf, text=info["helper"], font=(FONT, 11), fg=fg if style == "bold" else C_TEXT_MUT,
                     bg=self._bg).pack(pady=(0, 20))

        self._cd_var = tk.StringVar(value=str(duration))
        tk.Label(cf, textvariable=self._cd_var, font=(MONO, 64 if big else 20, "bold"),
                 fg=fg if style == "bold" else C_CD, bg=self._bg).pack()

        bar_w = 420 if big else 260
        self._bar = tk.Canvas(cf, width=bar_w, height=6, bg=C_CARD, highlightthickness=0)
        self._bar.pack(pady=(8, 12))
        self._draw_bar(duration)

        self._btn = tk.Button(cf, text="  Done  ", font=(FONT, 14 if big else 9, "bold"),
                              bg=C_BTN_PRI, fg=C_TEXT, relief="flat", padx=24, pady=8 if big else 2,
                              cursor="hand2", command=self._dismiss_clicked)
        self._btn.pack()
        self._set_dismissable(can_dismiss)

        ov.bind("<Escape>", lambda e: self._dismiss_clicked())
        ov.focus_force()
        self.win = ov

    def update(self, remaining: int, can_dismiss: bool) -> None:
        if not self.win:
            return
        try:
            self._cd_var.set(str(remaining))
            self._draw_bar(remaining)
            self._set_dismissable(can_dismiss)
        except tk.TclError:
            self.win = None

    def hide(self) -> None:
        if self.win:
            try:
                self.win.destroy()
            except tk.TclError:
                pass
            self.win = None

    def _draw_bar(self, remaining: int) -> None:
        c = self._bar
        c.delete("all")
        width = int(c.cget("width"))
        c.create_rectangle(0, 0, int(width * remaining / self._duration), 6,
                           fill=self._accent if self._bg == C_OV_BG else C_BG, width=0)

    def _set_dismissable(self, can_dismiss: bool) -> None:
        self._btn.config(state="normal" if can_dismiss else "disabled",
                         text="  Done  " if can_dismiss else "  Focus…  ")

    def _dismiss_clicked(self) -> None:
        if self.on_dismiss:
            self.on_dismiss()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
class HealthReminderApp:

    def __init__(self, config_path: Optional[str] = None, test_mode: bool = False):
        self.root = tk.Tk()
        self.root.withdraw()

        self.config_path = config_path
        self.test_mode = test_mode
        self.config = load_config(config_path)
        self.stats = load_stats()
        update_stats_for_today(self.stats)
        configs = resolve_configs(self.config, test_mode)

        # Composition root: the only scheduler in the process
        self.ticker = TkTickSource(self.root)
        self.view = TkOverlayView(self.root)
        self.gateway = PresentationGateway(
            self.view, self.ticker, configs,
            display_style=self.config.get("display_style", "modern"),
            force_focus_mode=self.config.get("force_focus_mode", False))
        self.view.on_dismiss = self.gateway.dismiss_current
        self.scheduler = ReminderScheduler(configs, gateway=self.gateway, ticker=self.ticker)
        self.power = PowerStateMonitor(self.scheduler, self.ticker)

        self.gateway.add_dismiss_listener(self._on_reminder_dismissed)
        self.scheduler.add_state_listener(self._on_state_change)

        self._settings_win = None
        self._st_rows: dict[ReminderCategory, tuple[tk.StringVar, tk.StringVar]] = {}

        if HAS_TRAY:
            threading.Thread(target=self._run_tray, daemon=True).start()
        else:
            # Without a tray the settings window is the control surface
            self.root.bind_all("<Control-q>", lambda e: self._quit())
            self.root.after(300, self._show_settings_window)

        self._print_schedule()
        self.power.start()
        if self.config.get("auto_start", True):
            self.scheduler.start()
        self.root.mainloop()

    # ━━━ Callbacks ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def _on_reminder_dismissed(self, category: ReminderCategory, completed: bool, preview: bool) -> None:
        if preview:
            return
        self.scheduler.acknowledge_dismissal(category)
        record_reminder(self.stats, category, completed)
        save_stats(self.stats)

    def _on_state_change(self, state: SchedulerState) -> None:
        if state is SchedulerState.STOPPED:
            self.gateway.clear()
        self._update_tray_icon()

    # ━━━ Settings window ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    def _show_settings_window(self) -> None:
        if self._settings_win:
            try: self._settings_win.lift();  self._settings_win.focus_force();  return
            except tk.TclError: self._settings_win = None

        win = tk.Toplevel(self.root)
        win.title("Health Reminder — Settings")
        win.configure(bg=C_BG);  win.resizable(False, False)
        win.protocol("WM_DELETE_WINDOW", self._close_settings)
        self._settings_win = win
        pad = dict(padx=20)

        # ══════ CONTROL BUTTONS ══════
        ctrl = tk.Frame(win, bg=C_BG)
        ctrl.pack(fill="x", pady=(14, 8), **pad)
        self._run_btn = tk.Button(ctrl, font=(FONT, 9), bg=C_BTN_SEC, fg=C_TEXT, relief="flat",
                                  width=10, pady=4, cursor="hand2", command=self.scheduler.toggle)
        self._run_btn.pack(side="left", padx=(0, 6))
        for text, cmd in [("■ Stop", self.scheduler.stop), ("↻ Reset", self.scheduler.reset)]:
            tk.Button(ctrl, text=text, font=(FONT, 9), bg=C_BTN_SEC, fg=C_TEXT_DIM, relief="flat",
                      padx=10, pady=4, cursor="hand2", command=cmd).pack(side="left", padx=(0, 6))

        # ══════ PER-CATEGORY ROWS ══════
        self._st_rows = {}
        self._rows = {}
        for cat in CATEGORY_ORDER:
            info = CATEGORY_INFO[cat]
            entry = self.config["reminders"][cat.value]
            lf = tk.Frame(win, bg=C_CARD, padx=14, pady=8);  lf.pack(fill="x", pady=2, **pad)

            top = tk.Frame(lf, bg=C_CARD);  top.pack(fill="x")
            en_var = tk.BooleanVar(value=entry["enabled"])
            tk.Checkbutton(top, text=f"{info['icon']}  {info['label']}", variable=en_var,
                           font=(FONT, 10), fg=C_TEXT, bg=C_CARD, selectcolor=C_CARD_IN,
                           activebackground=C_CARD, anchor="w").pack(side="left")
            tk.Button(top, text="Preview", font=(FONT, 8), bg=C_BTN_SEC, fg=C_TEXT_DIM, relief="flat",
                      padx=8, cursor="hand2",
                      command=lambda c=cat: self._preview(c)).pack(side="right")

            tv = tk.StringVar(value="--:--")
            tk.Label(lf, textvariable=tv, font=(MONO, 18, "bold"), fg=C_CD, bg=C_CARD, anchor="w").pack(fill="x")
            dv = tk.StringVar()
            tk.Label(lf, textvariable=dv, font=(FONT, 9), fg=C_TEXT_MUT, bg=C_CARD, anchor="w").pack(fill="x")
            self._st_rows[cat] = (tv, dv)

            nums = tk.Frame(lf, bg=C_CARD);  nums.pack(fill="x", pady=(6, 0))
            tk.Label(nums, text="Every (min)", font=(FONT, 9), fg=C_TEXT_DIM, bg=C_CARD).pack(side="left")
            iv_spin = tk.Spinbox(nums, from_=1, to=240, width=5, font=(FONT, 9))
            iv_spin.delete(0, "end");  iv_spin.insert(0, str(entry["interval_minutes"]))
            iv_spin.pack(side="left", padx=(4, 14))
            tk.Label(nums, text="Show (sec)", font=(FONT, 9), fg=C_TEXT_DIM, bg=C_CARD).pack(side="left")
            dur_spin = tk.Spinbox(nums, from_=5, to=300, increment=5, width=5, font=(FONT, 9))
            dur_spin.delete(0, "end");  dur_spin.insert(0, str(entry["duration_seconds"]))
            dur_spin.pack(side="left", padx=4)
            self._rows[cat] = (en_var, iv_spin, dur_spin)

        # ══════ DISPLAY ══════
        df = tk.Frame(win, bg=C_CARD, padx=14, pady=8);  df.pack(fill="x", pady=(8, 2), **pad)
        tk.Label(df, text="Reminder style", font=(FONT, 10), fg=C_TEXT_DIM, bg=C_CARD, anchor="w").pack(fill="x")
        self._style_var = tk.StringVar(value=self.config.get("display_style", "modern"))
        sf = tk.Frame(df, bg=C_CARD);  sf.pack(fill="x")
        for style in DISPLAY_STYLES:
            tk.Radiobutton(sf, text=style.title(), value=style, variable=self._style_var,
                           font=(FONT, 9), fg=C_TEXT, bg=C_CARD, selectcolor=C_CARD_IN,
                           activebackground=C_CARD).pack(side="left", padx=(0, 10))
        self._focus_var = tk.BooleanVar(value=self.config.get("force_focus_mode", False))
        tk.Checkbutton(df, text="Focus mode (no dismissing until the countdown ends)",
                       variable=self._focus_var, font=(FONT, 9), fg=C_TEXT, bg=C_CARD,
                       selectcolor=C_CARD_IN, activebackground=C_CARD, anchor="w").pack(fill="x")
        self._auto_var = tk.BooleanVar(value=self.config.get("auto_start", True))
        tk.Checkbutton(df, text="Start reminders on launch", variable=self._auto_var,
                       font=(FONT, 9), fg=C_TEXT, bg=C_CARD, selectcolor=C_CARD_IN,
                       activebackground=C_CARD, anchor="w").pack(fill="x")

        # ══════ SAVE ══════
        bf = tk.Frame(win, bg=C_BG);  bf.pack(fill="x", pady=(10, 14), **pad)
        self._save_fb = tk.StringVar()
        tk.Label(bf, textvariable=self._save_fb, font=(FONT, 9), fg=C_OK, bg=C_BG).pack(side="left")
        tk.Button(bf, text="Save", font=(FONT, 10, "bold"), bg=C_BTN_PRI, fg=C_TEXT, relief="flat",
                  padx=18, pady=4, cursor="hand2", command=self._apply_settings).pack(side="right")

        self._update_status()

    def _apply_settings(self) -> None:
        values = {}
        try:
            for cat, (en_var, iv_spin, dur_spin) in self._rows.items():
                iv = int(iv_spin.get());  dur = int(dur_spin.get())
                if iv < 1:
                    self._save_fb.set("⚠ Intervals must be ≥ 1 min");  return
                if dur < 1:
                    self._save_fb.set("⚠ Display time must be ≥ 1 sec");  return
                values[cat] = (en_var.get(), iv, dur)
        except ValueError:
            self._save_fb.set("⚠ Enter whole numbers");  return

        for cat, (enabled, iv, dur) in values.items():
            set_reminder_settings(self.config, cat, enabled, iv, dur)
        self.config["display_style"] = self._style_var.get()
        self.config["force_focus_mode"] = self._focus_var.get()
        self.config["auto_start"] = self._auto_var.get()
        save_config(self.config, self.config_path)

        configs = resolve_configs(self.config, self.test_mode)
        self.scheduler.update_configs(configs)
        self.gateway.update_configs(configs)
        self.gateway.set_display_style(self.config["display_style"])
        self.gateway.set_force_focus_mode(self.config["force_focus_mode"])
        # New intervals only apply on a fresh start
        if not self.scheduler.is_stopped:
            self.scheduler.reset()

        self._save_fb.set("✓ Saved")
        def _clear_fb():
            try: self._save_fb.set("")
            except tk.TclError: pass
        self._settings_win.after(SAVE_FEEDBACK_MS, _clear_fb)

    def _preview(self, category: ReminderCategory) -> None:
        duration = None
        row = self._rows.get(category) if self._settings_win else None
        if row:
            try:
                duration = int(row[2].get())
            except ValueError:
                pass
        self.gateway.preview(category, duration)

    def _update_status(self) -> None:
        if not self._settings_win:
            return
        try:
            if not self._settings_win.winfo_exists():
                self._settings_win = None
                return
        except tk.TclError:
            self._settings_win = None
            return

        state = self.scheduler.state
        for cat, st in self.scheduler.status().items():
            tv, dv = self._st_rows[cat]
            every = f"every {format_mm_ss(self.scheduler.timer(cat).interval_seconds)}"
            if not st["enabled"]:
                tv.set("—");  dv.set("disabled")
            elif state is SchedulerState.STOPPED:
                tv.set("--:--");  dv.set("stopped")
            elif state is SchedulerState.PAUSED:
                tv.set(st["formatted"]);  dv.set(f"PAUSED — {every}")
            else:
                tv.set(st["formatted"]);  dv.set(every)

        self._run_btn.config(text="⏸ Pause" if state is SchedulerState.RUNNING else "▶ Start")

        try:
            self._settings_win.after(STATUS_REFRESH_MS, self._update_status)
        except tk.TclError:
            self._settings_win = None

    def _close_settings(self) -> None:
        if self._settings_win:
            try:
                self._settings_win.destroy()
            except tk.TclError:
                pass
            self._settings_win = None

    # ━━━ Startup ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _print_schedule(self):
        try:
            print()
            print("  +-----------------------------------------------+")
            print("  |        Health Reminder -- Schedule            |")
            print("  +-----------------------------------------------+")
            for cat, cfg in self.scheduler.configs.items():
                every = f"every {format_mm_ss(cfg.interval_seconds)}" if cfg.enabled else "off"
                print(f"  |  {CATEGORY_INFO[cat]['label']:<10s} {every:<20s} {cfg.display_duration_seconds:>4d}s shown  |")
            print("  +-----------------------------------------------+")
            if self.test_mode:
                print("\n  [!] TEST MODE: Using short intervals")
            if not HAS_TRAY:
                print("\n  [!] No tray icon (pystray not available).")
                print("      pip install pystray pillow")
            print()
        except UnicodeEncodeError:
            pass

    # ━━━ System Tray ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _tray_image(self) -> Image.Image:
        return create_icon(64, paused=not self.scheduler.is_running)

    def _update_tray_icon(self) -> None:
        """Reflect scheduler state in the tray icon."""
        if HAS_TRAY and hasattr(self, "tray"):
            self.tray.icon = self._tray_image()
            suffix = {SchedulerState.PAUSED: " (PAUSED)", SchedulerState.STOPPED: " (STOPPED)"}
            self.tray.title = "Health Reminder" + suffix.get(self.scheduler.state, "")
            self.tray.update_menu()

    def _status_line(self, cat: ReminderCategory) -> str:
        st = self.scheduler.status()[cat]
        if not st["enabled"]:
            return f"{CATEGORY_INFO[cat]['icon']}  {CATEGORY_INFO[cat]['label']}: disabled"
        if self.scheduler.is_stopped:
            return f"{CATEGORY_INFO[cat]['icon']}  {CATEGORY_INFO[cat]['label']}: --:--"
        return f"{CATEGORY_INFO[cat]['icon']}  {CATEGORY_INFO[cat]['label']}: {st['formatted']}"

    def _run_tray(self) -> None:
        def later(fn, *args):
            return lambda icon, item: self.root.after(0, fn, *args)

        status_items = [
            pystray.MenuItem(lambda item, c=cat: self._status_line(c), None, enabled=False)
            for cat in CATEGORY_ORDER
        ]
        preview = pystray.Menu(*[
            pystray.MenuItem(CATEGORY_INFO[cat]["label"], later(self.gateway.preview, cat))
            for cat in CATEGORY_ORDER
        ])
        menu = pystray.Menu(
            pystray.MenuItem("Open", later(self._show_settings_window), default=True, visible=False),
            *status_items,
            pystray.Menu.SEPARATOR,
            pystray.MenuItem(
                lambda item: "⏸  Pause All" if self.scheduler.is_running else "▶  Start All",
                later(self.scheduler.toggle)),
            pystray.MenuItem("■  Stop", later(self.scheduler.stop),
                             enabled=lambda item: not self.scheduler.is_stopped),
            pystray.MenuItem("↻  Reset timers", later(self.scheduler.reset)),
            pystray.MenuItem("✕  Dismiss reminder", later(self.scheduler.dismiss_reminder),
                             enabled=lambda item: self.gateway.current is not None),
            pystray.MenuItem("👁  Preview", preview),
            pystray.MenuItem("⚙  Settings", later(self._show_settings_window)),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Quit", self._quit),
        )
        self.tray = pystray.Icon("health_reminder", self._tray_image(), "Health Reminder", menu)
        self.tray.run()

    def _quit(self, icon: Optional[Any] = None, item: Optional[Any] = None) -> None:
        if HAS_TRAY and hasattr(self, "tray"):
            self.tray.stop()
        self.root.after(0, self._shutdown)

    def _shutdown(self) -> None:
        # Runs on the tk thread, which is the only one that touches stats
        save_stats(self.stats)
        self.power.stop()
        self.scheduler.stop()
        self.root.quit()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Health Reminder: eyes, water and stand-up breaks")
    parser.add_argument("--test", action="store_true", help="Use short intervals for testing")
    parser.add_argument("--config", metavar="PATH", help="Settings file (default: ~/health_reminder_config.json)")
    args = parser.parse_args(argv)
    HealthReminderApp(config_path=args.config, test_mode=args.test)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
if __name__ == "__main__":
    main()
