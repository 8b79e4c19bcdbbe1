"""
Tests for the persisted document shape.
"""

from __future__ import annotations

import datetime
import uuid

from app_limit_enforcer.models import AppData, AppLimitRule, AppSettings, AppUsageRecord


class TestAppLimitRule:
    def test_display_name_defaults_to_file_name_without_extension(self) -> None:
        rule = AppLimitRule(process_name_or_path=r"C:\Program Files\Steam\steam.exe")
        assert rule.display_name == "steam"

    def test_explicit_display_name_is_kept(self) -> None:
        rule = AppLimitRule(process_name_or_path="chrome.exe", display_name="Browser")
        assert rule.display_name == "Browser"

    def test_defaults(self) -> None:
        rule = AppLimitRule(process_name_or_path="chrome")
        assert rule.daily_limit_minutes == 120
        assert rule.warning_minutes_before == 5
        assert rule.is_enabled is True
        assert isinstance(rule.id, uuid.UUID)

    def test_warning_threshold_is_not_clamped(self) -> None:
        rule = AppLimitRule(process_name_or_path="x", daily_limit_minutes=5, warning_minutes_before=10)
        assert rule.limit_seconds == 300
        assert rule.warning_threshold_seconds == -300

    def test_to_dict_uses_stable_field_names(self) -> None:
        rule = AppLimitRule(process_name_or_path="chrome.exe", daily_limit_minutes=60, warning_minutes_before=10)
        assert rule.to_dict() == {
            "id": str(rule.id),
            "processNameOrPath": "chrome.exe",
            "displayName": "chrome",
            "dailyLimitMinutes": 60,
            "warningMinutesBefore": 10,
            "isEnabled": True,
        }

    def test_from_dict_accepts_pascal_case_keys(self) -> None:
        rule_id = uuid.uuid4()
        rule = AppLimitRule.from_dict(
            {
                "Id": str(rule_id),
                "ProcessNameOrPath": "steam",
                "DisplayName": "Steam",
                "DailyLimitMinutes": 90,
                "WarningMinutesBefore": 15,
                "IsEnabled": False,
            }
        )
        assert rule.id == rule_id
        assert rule.daily_limit_minutes == 90
        assert rule.is_enabled is False


class TestAppUsageRecord:
    def test_to_dict(self) -> None:
        rule_id = uuid.uuid4()
        record = AppUsageRecord(rule_id=rule_id, date=datetime.date(2026, 1, 31), used_seconds_today=125)
        assert record.to_dict() == {
            "ruleId": str(rule_id),
            "date": "2026-01-31",
            "usedSecondsToday": 125,
            "warningShown": False,
        }

    def test_from_dict_accepts_datetime_strings(self) -> None:
        record = AppUsageRecord.from_dict(
            {"ruleId": str(uuid.uuid4()), "date": "2026-01-31T00:00:00", "usedSecondsToday": 10, "warningShown": True}
        )
        assert record.date == datetime.date(2026, 1, 31)
        assert record.warning_shown is True


class TestAppData:
    def test_empty_document_gives_defaults(self) -> None:
        data = AppData.from_dict({})
        assert data.rules == []
        assert data.usage_records == []
        assert data.settings == AppSettings()
        assert data.settings.polling_interval_seconds == 5

    def test_document_shape(self) -> None:
        rule = AppLimitRule(process_name_or_path="chrome")
        data = AppData(
            rules=[rule],
            usage_records=[AppUsageRecord(rule_id=rule.id, date=datetime.date(2026, 1, 1))],
        )
        doc = data.to_dict()
        assert set(doc) == {"rules", "usageRecords", "settings"}
        assert doc["settings"] == {"startWithWindows": True, "startMinimized": True, "pollingIntervalSeconds": 5}
        assert AppData.from_dict(doc) == data

    def test_non_positive_polling_interval_falls_back_to_default(self) -> None:
        assert AppSettings.from_dict({"pollingIntervalSeconds": 0}).polling_interval_seconds == 5
