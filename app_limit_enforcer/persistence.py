import os
import json
import logging
import datetime
import tempfile

from .config import DATA_FILE, RETENTION_DAYS
from .models import AppData
from .utils import ensure_dir, today


class DataService:
    def __init__(self, logger: logging.Logger, path: str = DATA_FILE):
        self._path = path
        self._logger = logger

    def load(self) -> AppData:
        if not os.path.exists(self._path):
            self._logger.info("No data file yet, starting with defaults")
            return AppData()
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                raise ValueError("document root is not an object")
            return AppData.from_dict(raw)
        except (OSError, ValueError, TypeError, KeyError, AttributeError):
            self._logger.exception("Data load failed, starting with defaults")
            return AppData()

    def save(self, data: AppData) -> None:
        tmp_path = None
        try:
            directory = os.path.dirname(self._path)
            ensure_dir(directory)
            text = json.dumps(data.to_dict(), indent=2)
            fd, tmp_path = tempfile.mkstemp(prefix=".appdata-", suffix=".tmp", dir=directory or None)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
            tmp_path = None
        except (OSError, TypeError, ValueError):
            self._logger.exception("Data save failed")
        finally:
            if tmp_path is not None:
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass

    def purge_older_than(
        self,
        data: AppData,
        days: int = RETENTION_DAYS,
        now: datetime.date | None = None,
    ) -> int:
        cutoff = (now or today()) - datetime.timedelta(days=days)
        before = len(data.usage_records)
        data.usage_records = [u for u in data.usage_records if u.date >= cutoff]
        removed = before - len(data.usage_records)
        if removed:
            self._logger.info(f"Purged {removed} usage records older than {cutoff}")
        return removed
