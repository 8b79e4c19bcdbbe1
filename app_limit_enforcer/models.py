import uuid
import datetime
from dataclasses import dataclass, field

from .config import (
    DEFAULT_DAILY_LIMIT_MIN,
    DEFAULT_WARNING_MIN,
    DEFAULT_POLLING_INTERVAL_SEC,
)
from .utils import display_name_for


def _lower_keys(data) -> dict:
    if not isinstance(data, dict):
        return {}
    return {str(k).lower(): v for k, v in data.items()}


def _parse_date(value) -> datetime.date:
    if isinstance(value, datetime.date):
        return value
    # Accepts both "2026-01-31" and "2026-01-31T00:00:00"
    return datetime.date.fromisoformat(str(value)[:10])


def _as_bool(value, default: bool) -> bool:
    if value is None:
        return default
    return bool(value)


@dataclass
class AppLimitRule:
    """A daily time budget for one application."""
    process_name_or_path: str
    display_name: str = ""
    daily_limit_minutes: int = DEFAULT_DAILY_LIMIT_MIN
    warning_minutes_before: int = DEFAULT_WARNING_MIN
    is_enabled: bool = True
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        if not self.display_name:
            self.display_name = display_name_for(self.process_name_or_path)

    @property
    def limit_seconds(self) -> int:
        return self.daily_limit_minutes * 60

    @property
    def warning_threshold_seconds(self) -> int:
        # Not clamped: a warning lead larger than the limit gives a negative threshold.
        return (self.daily_limit_minutes - self.warning_minutes_before) * 60

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "processNameOrPath": self.process_name_or_path,
            "displayName": self.display_name,
            "dailyLimitMinutes": self.daily_limit_minutes,
            "warningMinutesBefore": self.warning_minutes_before,
            "isEnabled": self.is_enabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppLimitRule":
        d = _lower_keys(data)
        raw_id = d.get("id")
        return cls(
            id=uuid.UUID(str(raw_id)) if raw_id else uuid.uuid4(),
            process_name_or_path=str(d.get("processnameorpath") or ""),
            display_name=str(d.get("displayname") or ""),
            daily_limit_minutes=int(d.get("dailylimitminutes", DEFAULT_DAILY_LIMIT_MIN)),
            warning_minutes_before=int(d.get("warningminutesbefore", DEFAULT_WARNING_MIN)),
            is_enabled=_as_bool(d.get("isenabled"), True),
        )


@dataclass
class AppUsageRecord:
    """Usage of one rule on one calendar day."""
    rule_id: uuid.UUID
    date: datetime.date
    used_seconds_today: int = 0
    warning_shown: bool = False

    def to_dict(self) -> dict:
        return {
            "ruleId": str(self.rule_id),
            "date": self.date.isoformat(),
            "usedSecondsToday": self.used_seconds_today,
            "warningShown": self.warning_shown,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppUsageRecord":
        d = _lower_keys(data)
        return cls(
            rule_id=uuid.UUID(str(d["ruleid"])),
            date=_parse_date(d["date"]),
            used_seconds_today=int(d.get("usedsecondstoday", 0)),
            warning_shown=_as_bool(d.get("warningshown"), False),
        )


@dataclass
class AppSettings:
    start_with_windows: bool = True
    start_minimized: bool = True
    polling_interval_seconds: int = DEFAULT_POLLING_INTERVAL_SEC

    def to_dict(self) -> dict:
        return {
            "startWithWindows": self.start_with_windows,
            "startMinimized": self.start_minimized,
            "pollingIntervalSeconds": self.polling_interval_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppSettings":
        d = _lower_keys(data)
        interval = int(d.get("pollingintervalseconds", DEFAULT_POLLING_INTERVAL_SEC))
        return cls(
            start_with_windows=_as_bool(d.get("startwithwindows"), True),
            start_minimized=_as_bool(d.get("startminimized"), True),
            polling_interval_seconds=interval if interval > 0 else DEFAULT_POLLING_INTERVAL_SEC,
        )


@dataclass
class AppData:
    """Rules, usage records and settings; persisted as one document."""
    rules: list[AppLimitRule] = field(default_factory=list)
    usage_records: list[AppUsageRecord] = field(default_factory=list)
    settings: AppSettings = field(default_factory=AppSettings)

    def to_dict(self) -> dict:
        return {
            "rules": [r.to_dict() for r in self.rules],
            "usageRecords": [u.to_dict() for u in self.usage_records],
            "settings": self.settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppData":
        d = _lower_keys(data)
        return cls(
            rules=[AppLimitRule.from_dict(r) for r in (d.get("rules") or [])],
            usage_records=[AppUsageRecord.from_dict(u) for u in (d.get("usagerecords") or [])],
            settings=AppSettings.from_dict(d.get("settings") or {}),
        )
