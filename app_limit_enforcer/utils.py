import os
import datetime
import ntpath


def ensure_dir(path: str) -> None:
    if path:
        os.makedirs(path, exist_ok=True)


def today() -> datetime.date:
    return datetime.date.today()


def display_name_for(pattern: str) -> str:
    """File name without extension, for either a bare name or a full path."""
    base = ntpath.basename((pattern or "").strip())
    stem, _ext = os.path.splitext(base)
    return stem or base


def format_minutes(minutes: int) -> str:
    minutes = max(0, int(minutes))
    h, m = divmod(minutes, 60)
    return f"{h}h {m}m"


def usage_display(used_seconds: int, limit_minutes: int) -> str:
    used_minutes = max(0, int(used_seconds)) // 60
    return f"{used_minutes}m / {limit_minutes}m"


def usage_percent(used_seconds: int, limit_minutes: int) -> float:
    if limit_minutes <= 0:
        return 0.0
    used_minutes = used_seconds / 60.0
    return min(100.0, used_minutes / limit_minutes * 100.0)
