import os

APP_TITLE = "App Limit Enforcer"
APP_NAME = "AppLimitEnforcer"
LOGGER_NAME = APP_NAME


def _base_data_dir() -> str:
    if os.name == "nt":
        return os.getenv("LOCALAPPDATA") or os.getenv("APPDATA") or os.path.expanduser("~")
    return os.getenv("XDG_DATA_HOME") or os.path.join(os.path.expanduser("~"), ".local", "share")


APPDATA_DIR = os.path.join(_base_data_dir(), APP_NAME)
DATA_FILE = os.path.join(APPDATA_DIR, "appdata.json")

LOG_DIR = os.path.join(APPDATA_DIR, "logs")
LOG_FILE = os.path.join(LOG_DIR, "app_limit_enforcer.log")

DEFAULT_POLLING_INTERVAL_SEC = 5
SAVE_EVERY_SEC = 30.0
RETENTION_DAYS = 7
SCHEDULER_JOIN_TIMEOUT_SEC = 5.0

DEFAULT_DAILY_LIMIT_MIN = 120
DEFAULT_WARNING_MIN = 5

# Stripped on every platform so patterns like "game.exe" match regardless of OS.
EXECUTABLE_SUFFIX = ".exe"

# Start at login
STARTUP_REGISTRY_PATH = r"SOFTWARE\Microsoft\Windows\CurrentVersion\Run"
AUTOSTART_DIR = os.path.join(
    os.getenv("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config"),
    "autostart",
)
AUTOSTART_FILE = os.path.join(AUTOSTART_DIR, "app-limit-enforcer.desktop")

