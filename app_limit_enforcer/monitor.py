import time
import uuid
import logging
import datetime
import threading
from typing import Callable

import psutil

from .config import SAVE_EVERY_SEC, RETENTION_DAYS
from .events import (
    AppKilled,
    AppKillFailed,
    EventDispatcher,
    UsageUpdated,
    WarningTriggered,
)
from .models import AppData, AppLimitRule, AppSettings, AppUsageRecord
from .persistence import DataService
from .process_matcher import list_processes, match_processes, safe_process_name
from .scheduler import PeriodicTimer
from .store import AppDataStore
from .utils import today


class ProcessMonitorService:
    """Watches running processes and enforces the daily limit of each rule.

    One enforcement cycle runs every ``polling_interval_seconds`` on a
    background thread. Rule edits come from the UI thread. Shared state
    lives in an ``AppDataStore``; process enumeration, termination and
    disk writes all happen outside its lock.
    """

    def __init__(
        self,
        data_service: DataService,
        logger: logging.Logger,
        process_source: Callable[[], list] = list_processes,
        clock: Callable[[], float] = time.monotonic,
        today_fn: Callable[[], datetime.date] = today,
        save_every_sec: float = SAVE_EVERY_SEC,
        async_saves: bool = True,
    ):
        self._data_service = data_service
        self._logger = logger
        self._process_source = process_source
        self._clock = clock
        self._today = today_fn
        self._save_every_sec = save_every_sec
        self._async_saves = async_saves

        self._store = AppDataStore()
        self._events = EventDispatcher(logger)
        self._timer: PeriodicTimer | None = None
        self._lifecycle_lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self._save_state_lock = threading.Lock()
        self._last_save_mono: float | None = None
        self._closed = False

    # Lifecycle
    def initialize(self) -> None:
        data = self._data_service.load()
        self._data_service.purge_older_than(data, RETENTION_DAYS, self._today())
        self._store.replace(data)
        self._logger.info(
            f"Loaded {len(data.rules)} rules, {len(data.usage_records)} usage records"
        )

    def start(self) -> None:
        with self._lifecycle_lock:
            if self._closed:
                raise RuntimeError("monitor service is closed")
            interval = self._store.settings().polling_interval_seconds
            if self._timer is None or self._timer.interval != interval:
                if self._timer is not None:
                    self._timer.close()
                self._timer = PeriodicTimer(interval, self.run_cycle, self._logger, name="MonitorTimer")
            self._timer.start()
        self._logger.info(f"Monitoring started interval={interval}s")

    def stop(self) -> None:
        with self._lifecycle_lock:
            timer = self._timer
        if timer is not None:
            timer.stop()
            self._logger.info("Monitoring stopped")

    def close(self) -> None:
        with self._lifecycle_lock:
            if self._closed:
                return
            self._closed = True
            timer = self._timer
            self._timer = None
        if timer is not None:
            timer.close()
        self._logger.info("Monitor service closed")

    def is_running(self) -> bool:
        with self._lifecycle_lock:
            return self._timer is not None and self._timer.is_running()

    def __enter__(self) -> "ProcessMonitorService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Events
    def subscribe(self, event_type: type, handler: Callable) -> None:
        self._events.subscribe(event_type, handler)

    def unsubscribe(self, event_type: type, handler: Callable) -> None:
        self._events.unsubscribe(event_type, handler)

    # Commands
    def rules(self) -> list[AppLimitRule]:
        return self._store.rules()

    def get_rule(self, rule_id: uuid.UUID) -> AppLimitRule | None:
        return self._store.get_rule(rule_id)

    def settings(self) -> AppSettings:
        return self._store.settings()

    def snapshot(self) -> AppData:
        return self._store.snapshot()

    def add_rule(self, rule: AppLimitRule) -> None:
        _validate_rule(rule)
        self._store.add_rule(rule)
        self._logger.info(
            f"Rule added name={rule.display_name} pattern={rule.process_name_or_path} "
            f"limit={rule.daily_limit_minutes}m warn={rule.warning_minutes_before}m"
        )
        self.save_data()

    def update_rule(self, rule: AppLimitRule) -> bool:
        _validate_rule(rule)
        updated = self._store.update_rule(rule)
        if updated:
            self._logger.info(f"Rule updated id={rule.id}")
            self.save_data()
        return updated

    def remove_rule(self, rule_id: uuid.UUID) -> bool:
        removed = self._store.remove_rule(rule_id)
        if removed:
            self._logger.info(f"Rule removed id={rule_id}")
            self.save_data()
        return removed

    def set_rule_enabled(self, rule_id: uuid.UUID, enabled: bool) -> bool:
        changed = self._store.set_rule_enabled(rule_id, enabled)
        if changed:
            self._logger.info(f"Rule toggled id={rule_id} enabled={bool(enabled)}")
            self.save_data()
        return changed

    def get_or_create_today_usage(self, rule_id: uuid.UUID) -> AppUsageRecord:
        return self._store.get_or_create_usage(rule_id, self._today())

    def update_settings(
        self,
        start_with_windows: bool | None = None,
        start_minimized: bool | None = None,
        polling_interval_seconds: int | None = None,
    ) -> AppSettings:
        changes = {}
        if start_with_windows is not None:
            changes["start_with_windows"] = bool(start_with_windows)
        if start_minimized is not None:
            changes["start_minimized"] = bool(start_minimized)
        if polling_interval_seconds is not None:
            if int(polling_interval_seconds) <= 0:
                raise ValueError("polling_interval_seconds must be positive")
            changes["polling_interval_seconds"] = int(polling_interval_seconds)

        before = self._store.settings()
        settings = self._store.update_settings(**changes)
        self._logger.info(f"Settings updated {changes}")
        self.save_data()

        if settings.polling_interval_seconds != before.polling_interval_seconds and self.is_running():
            self.start()
        return settings

    def save_data(self) -> None:
        with self._save_state_lock:
            self._last_save_mono = self._clock()
        self._save_snapshot(self._store.snapshot())

    # Enforcement cycle
    def run_cycle(self) -> None:
        # Serializes cycles across timers replaced by start() or update_settings().
        with self._cycle_lock:
            try:
                self._monitor_cycle()
            except Exception:
                self._logger.exception("Monitor cycle failed")

    def _monitor_cycle(self) -> None:
        rules = self._store.rules(enabled_only=True)
        interval = self._store.settings().polling_interval_seconds
        day = self._today()

        processes = self._process_source() if rules else []
        for rule in rules:
            self._check_rule(rule, processes, interval, day)

        self._flush_if_due()

    def _check_rule(
        self,
        rule: AppLimitRule,
        processes: list,
        interval: int,
        day: datetime.date,
    ) -> None:
        self._store.get_or_create_usage(rule.id, day)

        matched = match_processes(rule, processes)
        if not matched:
            return

        limit_seconds = rule.limit_seconds
        result = self._store.accrue(
            rule.id,
            day,
            interval,
            limit_seconds,
            rule.warning_threshold_seconds,
        )
        if result is None:
            return

        if result.already_over_limit:
            self._kill_all(rule, matched)
        else:
            if result.warning_due:
                remaining_minutes = (limit_seconds - result.used_seconds) // 60
                self._logger.info(
                    f"Warning name={rule.display_name} remaining={remaining_minutes}m"
                )
                self._events.emit(WarningTriggered(rule, remaining_minutes))

            if result.used_seconds >= limit_seconds:
                self._kill_all(rule, matched)

        self._events.emit(UsageUpdated(rule.id, result.used_seconds, limit_seconds))

    def _kill_all(self, rule: AppLimitRule, processes: list) -> None:
        for proc in processes:
            self._try_kill(proc, rule)

    def _try_kill(self, proc, rule: AppLimitRule) -> None:
        name = safe_process_name(proc) or rule.display_name
        try:
            proc.kill()
        except (psutil.Error, OSError) as exc:
            error = str(exc) or type(exc).__name__
            self._logger.warning(f"Kill failed name={name} error={error}")
            self._events.emit(AppKillFailed(rule, name, error))
            return
        self._logger.info(f"Killed name={name} rule={rule.display_name}")
        self._events.emit(AppKilled(rule, name))

    def _flush_if_due(self) -> None:
        now = self._clock()
        with self._save_state_lock:
            due = self._last_save_mono is None or (now - self._last_save_mono) >= self._save_every_sec
            if due:
                self._last_save_mono = now
        if not due:
            return

        data = self._store.snapshot()
        if self._async_saves:
            threading.Thread(
                target=self._save_snapshot, args=(data,), name="AppDataSave", daemon=True
            ).start()
        else:
            self._save_snapshot(data)

    def _save_snapshot(self, data: AppData) -> None:
        try:
            self._data_service.save(data)
        except Exception:
            self._logger.exception("Save failed")


def _validate_rule(rule: AppLimitRule) -> None:
    if not (rule.process_name_or_path or "").strip():
        raise ValueError("process_name_or_path must not be empty")
    if int(rule.daily_limit_minutes) <= 0:
        raise ValueError("daily_limit_minutes must be positive")
    if int(rule.warning_minutes_before) < 0:
        raise ValueError("warning_minutes_before must not be negative")
