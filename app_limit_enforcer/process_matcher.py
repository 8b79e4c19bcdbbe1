import psutil

from .config import EXECUTABLE_SUFFIX
from .models import AppLimitRule


def list_processes() -> list[psutil.Process]:
    return list(psutil.process_iter())


def safe_process_name(proc) -> str | None:
    try:
        return proc.name()
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        return None
    except OSError:
        return None


def safe_process_path(proc) -> str | None:
    try:
        return proc.exe() or None
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        return None
    except OSError:
        return None


def short_name(name: str) -> str:
    """Lower-cased name with the executable suffix removed."""
    n = (name or "").lower()
    if EXECUTABLE_SUFFIX and n.endswith(EXECUTABLE_SUFFIX):
        n = n[: -len(EXECUTABLE_SUFFIX)]
    return n


def _looks_like_path(pattern: str) -> bool:
    return "\\" in pattern or "/" in pattern


def match_processes(rule: AppLimitRule, processes) -> list:
    pattern = rule.process_name_or_path or ""
    search_name = short_name(pattern)
    search_path = pattern.lower() if _looks_like_path(pattern) else None

    matches = []
    for proc in processes:
        name = safe_process_name(proc)
        if name is None:
            continue

        if short_name(name) == search_name:
            matches.append(proc)
            continue

        if search_path is not None:
            path = safe_process_path(proc)
            if path is not None and path.lower() == search_path:
                matches.append(proc)

    return matches
