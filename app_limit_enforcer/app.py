import uuid
from tkinter import filedialog, messagebox

import customtkinter as ctk

from .config import (
    APP_TITLE,
    APPDATA_DIR,
    DEFAULT_WARNING_MIN,
)
from .events import AppKilled, AppKillFailed, UsageUpdated, WarningTriggered
from .logging_setup import setup_logger
from .models import AppLimitRule
from .monitor import ProcessMonitorService
from .persistence import DataService
from .tray import TrayController
from .utils import display_name_for, ensure_dir, format_minutes, usage_display, usage_percent
from . import startup


ctk.set_appearance_mode("Dark")
ctk.set_default_color_theme("blue")


def _parse_int(text: str, default: int) -> int:
    try:
        value = int((text or "").strip())
    except ValueError:
        return default
    return value if value >= 0 else default


class RuleRow:
    def __init__(self, parent, rule: AppLimitRule, used_seconds: int, on_toggle, on_remove):
        self.rule_id = rule.id
        self.limit_minutes = rule.daily_limit_minutes

        self.frame = ctk.CTkFrame(parent)
        self.frame.pack(fill="x", padx=6, pady=4)
        self.frame.grid_columnconfigure(1, weight=1)

        self.enabled_var = ctk.BooleanVar(value=rule.is_enabled)
        self.enabled_box = ctk.CTkCheckBox(
            self.frame,
            text="",
            width=24,
            variable=self.enabled_var,
            command=lambda: on_toggle(rule.id, bool(self.enabled_var.get())),
        )
        self.enabled_box.grid(row=0, column=0, rowspan=2, padx=(10, 4), pady=8)

        ctk.CTkLabel(self.frame, text=rule.display_name, font=("Arial", 14, "bold"), anchor="w").grid(
            row=0, column=1, sticky="w", padx=4, pady=(8, 0)
        )
        ctk.CTkLabel(
            self.frame,
            text=f"{rule.process_name_or_path}  |  limit {format_minutes(rule.daily_limit_minutes)}",
            text_color="gray",
            anchor="w",
        ).grid(row=1, column=1, sticky="w", padx=4)

        self.usage_label = ctk.CTkLabel(self.frame, text="", anchor="e")
        self.usage_label.grid(row=0, column=2, sticky="e", padx=8, pady=(8, 0))

        self.bar = ctk.CTkProgressBar(self.frame)
        self.bar.grid(row=2, column=1, columnspan=2, sticky="ew", padx=4, pady=(4, 10))

        ctk.CTkButton(
            self.frame,
            text="Remove",
            width=70,
            fg_color="#7f8c8d",
            hover_color="#c0392b",
            command=lambda: on_remove(rule.id),
        ).grid(row=1, column=2, sticky="e", padx=8)

        self.set_usage(used_seconds)

    def set_usage(self, used_seconds: int) -> None:
        self.usage_label.configure(text=usage_display(used_seconds, self.limit_minutes))
        self.bar.set(usage_percent(used_seconds, self.limit_minutes) / 100.0)


class AppLimitEnforcerApp:
    def __init__(self):
        ensure_dir(APPDATA_DIR)

        self.logger = setup_logger()
        self.logger.info("App start")

        self.root = ctk.CTk()
        self.root.title(APP_TITLE)
        self.root.geometry("560x700")
        self.root.minsize(520, 600)
        self.root.protocol("WM_DELETE_WINDOW", self.hide_to_tray)

        self._rows: dict[uuid.UUID, RuleRow] = {}
        self._exiting = False

        self.monitor = ProcessMonitorService(DataService(self.logger), self.logger)
        self.monitor.initialize()
        self.monitor.subscribe(WarningTriggered, self._on_warning)
        self.monitor.subscribe(AppKilled, self._on_app_killed)
        self.monitor.subscribe(AppKillFailed, self._on_app_kill_failed)
        self.monitor.subscribe(UsageUpdated, self._on_usage_updated)

        self.tray = TrayController(
            title=APP_TITLE,
            on_show=self.show_from_tray,
            on_exit=self.exit_app,
        )

        self._build_ui()
        self._apply_defaults()
        self.refresh_rules()

        self.monitor.start()
        self.tray.ensure_running()

        if self.monitor.settings().start_minimized:
            self.root.after(0, self.hide_to_tray)

    # UI
    def _build_ui(self) -> None:
        self.header = ctk.CTkLabel(self.root, text=APP_TITLE, font=("Roboto", 24, "bold"))
        self.header.pack(pady=(16, 8))

        self.frame_add = ctk.CTkFrame(self.root)
        self.frame_add.pack(padx=16, pady=6, fill="x")
        self.frame_add.grid_columnconfigure(1, weight=1)

        ctk.CTkLabel(self.frame_add, text="Process name or path:").grid(
            row=0, column=0, sticky="w", padx=12, pady=(12, 6)
        )
        self.pattern_entry = ctk.CTkEntry(self.frame_add, placeholder_text="chrome.exe")
        self.pattern_entry.grid(row=0, column=1, sticky="ew", padx=4, pady=(12, 6))
        ctk.CTkButton(self.frame_add, text="Browse", width=80, command=self.browse_executable).grid(
            row=0, column=2, padx=12, pady=(12, 6)
        )

        self.frame_limits = ctk.CTkFrame(self.frame_add, fg_color="transparent")
        self.frame_limits.grid(row=1, column=0, columnspan=3, sticky="ew", padx=8, pady=4)

        ctk.CTkLabel(self.frame_limits, text="Limit hours:").pack(side="left", padx=4)
        self.hours_entry = ctk.CTkEntry(self.frame_limits, width=50, justify="center")
        self.hours_entry.pack(side="left", padx=4)
        ctk.CTkLabel(self.frame_limits, text="minutes:").pack(side="left", padx=4)
        self.minutes_entry = ctk.CTkEntry(self.frame_limits, width=50, justify="center")
        self.minutes_entry.pack(side="left", padx=4)
        ctk.CTkLabel(self.frame_limits, text="Warn before (min):").pack(side="left", padx=4)
        self.warning_entry = ctk.CTkEntry(self.frame_limits, width=50, justify="center")
        self.warning_entry.pack(side="left", padx=4)

        ctk.CTkButton(self.frame_add, text="Add application", command=self.add_rule).grid(
            row=2, column=0, columnspan=3, sticky="ew", padx=12, pady=(6, 12)
        )

        self.rules_frame = ctk.CTkScrollableFrame(self.root, label_text="Limited applications")
        self.rules_frame.pack(padx=16, pady=6, fill="both", expand=True)

        self.empty_label = ctk.CTkLabel(
            self.rules_frame,
            text="No applications yet. Add one above.",
            text_color="gray",
        )

        self.frame_settings = ctk.CTkFrame(self.root)
        self.frame_settings.pack(padx=16, pady=(6, 12), fill="x")

        self._startup_var = ctk.BooleanVar(value=False)
        ctk.CTkCheckBox(
            self.frame_settings,
            text="Start at login",
            variable=self._startup_var,
            command=self._on_startup_toggle,
        ).pack(side="left", padx=12, pady=12)

        self._minimized_var = ctk.BooleanVar(value=False)
        ctk.CTkCheckBox(
            self.frame_settings,
            text="Start minimized",
            variable=self._minimized_var,
            command=self._on_minimized_toggle,
        ).pack(side="left", padx=12, pady=12)

        ctk.CTkButton(self.frame_settings, text="Minimize to tray", width=130, command=self.hide_to_tray).pack(
            side="right", padx=12, pady=12
        )

    def _apply_defaults(self) -> None:
        self._reset_form()
        self._startup_var.set(startup.is_startup_enabled())
        self._minimized_var.set(self.monitor.settings().start_minimized)

    def _reset_form(self) -> None:
        for entry, value in (
            (self.hours_entry, "2"),
            (self.minutes_entry, "0"),
            (self.warning_entry, str(DEFAULT_WARNING_MIN)),
        ):
            entry.delete(0, "end")
            entry.insert(0, value)
        self.pattern_entry.delete(0, "end")

    def refresh_rules(self) -> None:
        for row in self._rows.values():
            row.frame.destroy()
        self._rows.clear()

        rules = self.monitor.rules()
        for rule in rules:
            usage = self.monitor.get_or_create_today_usage(rule.id)
            self._rows[rule.id] = RuleRow(
                self.rules_frame,
                rule,
                usage.used_seconds_today,
                on_toggle=self._on_rule_toggle,
                on_remove=self.remove_rule,
            )

        if rules:
            self.empty_label.pack_forget()
        else:
            self.empty_label.pack(pady=24)

    # Commands
    def browse_executable(self) -> None:
        path = filedialog.askopenfilename(
            title="Select Application",
            filetypes=[("Executable files", "*.exe"), ("All files", "*.*")],
        )
        if path:
            self.pattern_entry.delete(0, "end")
            self.pattern_entry.insert(0, path)

    def add_rule(self) -> None:
        pattern = self.pattern_entry.get().strip()
        if not pattern:
            messagebox.showwarning(
                "Validation Error", "Please enter a process name or browse for an executable."
            )
            return

        hours = _parse_int(self.hours_entry.get(), 0)
        minutes = _parse_int(self.minutes_entry.get(), 0)
        total_minutes = hours * 60 + minutes
        if total_minutes <= 0:
            messagebox.showwarning("Validation Error", "Please enter a valid time limit (at least 1 minute).")
            return

        warning_minutes = _parse_int(self.warning_entry.get(), DEFAULT_WARNING_MIN)

        rule = AppLimitRule(
            process_name_or_path=pattern,
            display_name=display_name_for(pattern),
            daily_limit_minutes=total_minutes,
            warning_minutes_before=warning_minutes,
        )
        self.monitor.add_rule(rule)
        self.refresh_rules()
        self._reset_form()

    def remove_rule(self, rule_id: uuid.UUID) -> None:
        if not messagebox.askyesno(
            "Confirm Removal", "Are you sure you want to remove this application from the list?"
        ):
            return
        self.monitor.remove_rule(rule_id)
        self.refresh_rules()

    def _on_rule_toggle(self, rule_id: uuid.UUID, enabled: bool) -> None:
        self.monitor.set_rule_enabled(rule_id, enabled)

    def _on_startup_toggle(self) -> None:
        enabled = bool(self._startup_var.get())
        if not startup.set_startup_enabled(enabled):
            self._startup_var.set(startup.is_startup_enabled())
        self.monitor.update_settings(start_with_windows=bool(self._startup_var.get()))

    def _on_minimized_toggle(self) -> None:
        self.monitor.update_settings(start_minimized=bool(self._minimized_var.get()))

    # Monitor events (called on the monitor thread)
    def _on_warning(self, event: WarningTriggered) -> None:
        name = event.rule.display_name
        minutes = event.remaining_minutes
        self.tray.notify("Time Warning", f"{name} has approximately {minutes} minutes remaining.")

        def _do():
            messagebox.showwarning(
                "Time Limit Warning",
                f"{name} has approximately {minutes} minutes of allowed time remaining.\n\n"
                "The application will be closed when the time limit is reached.",
            )

        self.root.after(0, _do)

    def _on_app_killed(self, event: AppKilled) -> None:
        self.tray.notify(
            "Application Closed",
            f"{event.process_name} was closed because the daily time limit was reached.",
        )

    def _on_app_kill_failed(self, event: AppKillFailed) -> None:
        def _do():
            messagebox.showerror(
                "Failed to Close Application",
                f"Could not close {event.process_name}.\n\nReason: {event.error_message}\n\n"
                "Please close the application manually.",
            )

        self.root.after(0, _do)

    def _on_usage_updated(self, event: UsageUpdated) -> None:
        def _do():
            row = self._rows.get(event.rule_id)
            if row is not None:
                row.set_usage(event.used_seconds)

        self.root.after(0, _do)

    # Tray
    def hide_to_tray(self) -> None:
        if self._exiting:
            return
        self.logger.info("Hide to tray")
        self.tray.ensure_running()
        self.root.withdraw()
        self.tray.notify(APP_TITLE, "Running in background. Use the tray icon to open.")

    def show_from_tray(self) -> None:
        self.logger.info("Show from tray")

        def _do():
            self.refresh_rules()
            self.root.deiconify()
            self.root.lift()
            self.root.focus_force()

        self.root.after(0, _do)

    def exit_app(self) -> None:
        self.logger.info("Exit requested")
        self._exiting = True
        self.monitor.stop()
        self.monitor.save_data()

        def _do():
            self.tray.stop()
            self.monitor.close()
            self.root.destroy()

        self.root.after(0, _do)

    def run(self) -> None:
        self.root.mainloop()
        self.monitor.close()
        self.logger.info("App stopped")
