import uuid
import datetime
import threading
from dataclasses import dataclass, replace

from .models import AppData, AppLimitRule, AppSettings, AppUsageRecord


@dataclass(frozen=True)
class AccrualResult:
    used_seconds: int
    already_over_limit: bool
    warning_due: bool


class AppDataStore:
    """Owns the in-memory AppData. Every read and write goes through one lock.

    Callers only ever receive copies, so nothing outside this class can
    mutate a rule or usage record without holding the lock.
    """

    def __init__(self, data: AppData | None = None):
        self._lock = threading.Lock()
        self._data = data if data is not None else AppData()

    def replace(self, data: AppData) -> None:
        with self._lock:
            self._data = data

    def snapshot(self) -> AppData:
        with self._lock:
            return AppData(
                rules=[replace(r) for r in self._data.rules],
                usage_records=[replace(u) for u in self._data.usage_records],
                settings=replace(self._data.settings),
            )

    # Settings
    def settings(self) -> AppSettings:
        with self._lock:
            return replace(self._data.settings)

    def update_settings(self, **changes) -> AppSettings:
        with self._lock:
            self._data.settings = replace(self._data.settings, **changes)
            return replace(self._data.settings)

    # Rule set
    def rules(self, enabled_only: bool = False) -> list[AppLimitRule]:
        with self._lock:
            return [replace(r) for r in self._data.rules if r.is_enabled or not enabled_only]

    def get_rule(self, rule_id: uuid.UUID) -> AppLimitRule | None:
        with self._lock:
            idx = self._rule_index(rule_id)
            return replace(self._data.rules[idx]) if idx >= 0 else None

    def add_rule(self, rule: AppLimitRule) -> None:
        with self._lock:
            if self._rule_index(rule.id) >= 0:
                raise ValueError(f"Rule {rule.id} already exists")
            self._data.rules.append(replace(rule))

    def update_rule(self, rule: AppLimitRule) -> bool:
        with self._lock:
            idx = self._rule_index(rule.id)
            if idx < 0:
                return False
            self._data.rules[idx] = replace(rule)
            return True

    def remove_rule(self, rule_id: uuid.UUID) -> bool:
        with self._lock:
            idx = self._rule_index(rule_id)
            self._data.usage_records = [u for u in self._data.usage_records if u.rule_id != rule_id]
            if idx < 0:
                return False
            del self._data.rules[idx]
            return True

    def set_rule_enabled(self, rule_id: uuid.UUID, enabled: bool) -> bool:
        with self._lock:
            idx = self._rule_index(rule_id)
            if idx < 0:
                return False
            self._data.rules[idx].is_enabled = bool(enabled)
            return True

    # Usage ledger
    def usage_records(self) -> list[AppUsageRecord]:
        with self._lock:
            return [replace(u) for u in self._data.usage_records]

    def get_or_create_usage(self, rule_id: uuid.UUID, day: datetime.date) -> AppUsageRecord:
        """Copy of the (rule, day) record, created on first reference.

        An unknown rule gets a zeroed record that is not stored.
        """
        with self._lock:
            if self._rule_index(rule_id) < 0:
                return AppUsageRecord(rule_id=rule_id, date=day)
            return replace(self._get_or_create(rule_id, day))

    def accrue(
        self,
        rule_id: uuid.UUID,
        day: datetime.date,
        seconds: int,
        limit_seconds: int,
        warning_threshold_seconds: int,
    ) -> AccrualResult | None:
        """Credit one polling interval to today's record.

        Nothing is added when the record is already at or over the limit.
        ``warning_due`` is true at most once per record: the flag is set here.
        Returns None if the rule was removed in the meantime.
        """
        with self._lock:
            if self._rule_index(rule_id) < 0:
                return None
            record = self._get_or_create(rule_id, day)
            if record.used_seconds_today >= limit_seconds:
                return AccrualResult(record.used_seconds_today, True, False)

            record.used_seconds_today += seconds
            warning_due = False
            if record.used_seconds_today >= warning_threshold_seconds and not record.warning_shown:
                record.warning_shown = True
                warning_due = True
            return AccrualResult(record.used_seconds_today, False, warning_due)

    def _get_or_create(self, rule_id: uuid.UUID, day: datetime.date) -> AppUsageRecord:
        for u in self._data.usage_records:
            if u.rule_id == rule_id and u.date == day:
                return u
        record = AppUsageRecord(rule_id=rule_id, date=day)
        self._data.usage_records.append(record)
        return record

    def _rule_index(self, rule_id: uuid.UUID) -> int:
        for i, r in enumerate(self._data.rules):
            if r.id == rule_id:
                return i
        return -1
