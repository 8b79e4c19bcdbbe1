from __future__ import annotations

import os

import pytest

from app_limit_enforcer import startup

pytestmark = pytest.mark.skipif(os.name == "nt", reason="autostart file is used off Windows")


@pytest.fixture
def autostart_file(tmp_path, monkeypatch):
    path = str(tmp_path / "autostart" / "app-limit-enforcer.desktop")
    monkeypatch.setattr(startup, "AUTOSTART_FILE", path)
    return path


class TestAutostart:
    def test_enable_writes_desktop_entry(self, autostart_file) -> None:
        assert startup.is_startup_enabled() is False
        assert startup.enable_startup() is True
        assert startup.is_startup_enabled() is True
        with open(autostart_file, encoding="utf-8") as f:
            text = f.read()
        assert "[Desktop Entry]" in text
        assert "-m app_limit_enforcer" in text

    def test_disable_removes_entry(self, autostart_file) -> None:
        startup.set_startup_enabled(True)
        assert startup.set_startup_enabled(False) is True
        assert startup.is_startup_enabled() is False

    def test_disable_when_not_enabled_succeeds(self, autostart_file) -> None:
        assert startup.disable_startup() is True
