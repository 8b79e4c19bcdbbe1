import os
import sys
import logging

from .config import (
    APP_NAME,
    APP_TITLE,
    AUTOSTART_FILE,
    LOGGER_NAME,
    STARTUP_REGISTRY_PATH,
)
from .utils import ensure_dir

logger = logging.getLogger(LOGGER_NAME)


def launch_command() -> str:
    if getattr(sys, "frozen", False):
        return f'"{sys.executable}"'
    return f'"{sys.executable}" -m app_limit_enforcer'


def is_startup_enabled() -> bool:
    if os.name == "nt":
        return _registry_value() is not None
    return os.path.exists(AUTOSTART_FILE)


def enable_startup() -> bool:
    try:
        if os.name == "nt":
            import winreg

            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, STARTUP_REGISTRY_PATH, 0, winreg.KEY_SET_VALUE) as key:
                winreg.SetValueEx(key, APP_NAME, 0, winreg.REG_SZ, launch_command())
        else:
            ensure_dir(os.path.dirname(AUTOSTART_FILE))
            with open(AUTOSTART_FILE, "w", encoding="utf-8") as f:
                f.write(_desktop_entry())
    except OSError:
        logger.exception("Enable start at login failed")
        return False
    logger.info("Start at login enabled")
    return True


def disable_startup() -> bool:
    try:
        if os.name == "nt":
            import winreg

            if _registry_value() is not None:
                with winreg.OpenKey(winreg.HKEY_CURRENT_USER, STARTUP_REGISTRY_PATH, 0, winreg.KEY_SET_VALUE) as key:
                    winreg.DeleteValue(key, APP_NAME)
        elif os.path.exists(AUTOSTART_FILE):
            os.remove(AUTOSTART_FILE)
    except OSError:
        logger.exception("Disable start at login failed")
        return False
    logger.info("Start at login disabled")
    return True


def set_startup_enabled(enabled: bool) -> bool:
    return enable_startup() if enabled else disable_startup()


def _registry_value() -> str | None:
    import winreg

    try:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, STARTUP_REGISTRY_PATH, 0, winreg.KEY_READ) as key:
            value, _kind = winreg.QueryValueEx(key, APP_NAME)
            return value
    except OSError:
        return None


def _desktop_entry() -> str:
    return "\n".join(
        [
            "[Desktop Entry]",
            "Type=Application",
            f"Name={APP_TITLE}",
            f"Exec={launch_command()}",
            "X-GNOME-Autostart-enabled=true",
            "",
        ]
    )
