from __future__ import annotations

import datetime
import logging

import psutil
import pytest

from app_limit_enforcer.models import AppData
from app_limit_enforcer.monitor import ProcessMonitorService

TODAY = datetime.date(2026, 3, 14)


class FakeProcess:
    """Stands in for psutil.Process: name(), exe(), kill()."""

    def __init__(self, name, exe=None, pid=1000, name_error=None, exe_error=None, kill_error=None):
        self.pid = pid
        self._name = name
        self._exe = exe
        self._name_error = name_error
        self._exe_error = exe_error
        self._kill_error = kill_error
        self.kill_calls = 0

    def name(self):
        if self._name_error is not None:
            raise self._name_error
        return self._name

    def exe(self):
        if self._exe_error is not None:
            raise self._exe_error
        return self._exe or ""

    def kill(self):
        self.kill_calls += 1
        if self._kill_error is not None:
            raise self._kill_error


class FakeDataService:
    def __init__(self, data: AppData | None = None):
        self.data = data if data is not None else AppData()
        self.saved: list[AppData] = []

    def load(self) -> AppData:
        return self.data

    def save(self, data: AppData) -> None:
        self.saved.append(data)

    def purge_older_than(self, data, days=7, now=None) -> int:
        cutoff = (now or TODAY) - datetime.timedelta(days=days)
        before = len(data.usage_records)
        data.usage_records = [u for u in data.usage_records if u.date >= cutoff]
        return before - len(data.usage_records)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ProcessTable:
    def __init__(self):
        self.processes: list[FakeProcess] = []
        self.calls = 0

    def __call__(self) -> list[FakeProcess]:
        self.calls += 1
        return list(self.processes)


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("AppLimitEnforcer.tests")


@pytest.fixture
def data_service() -> FakeDataService:
    return FakeDataService()


@pytest.fixture
def process_table() -> ProcessTable:
    return ProcessTable()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(data_service, process_table, clock, logger) -> ProcessMonitorService:
    svc = ProcessMonitorService(
        data_service,
        logger,
        process_source=process_table,
        clock=clock,
        today_fn=lambda: TODAY,
        async_saves=False,
    )
    svc.initialize()
    yield svc
    svc.close()


def no_such_process(pid: int = 1000) -> psutil.NoSuchProcess:
    return psutil.NoSuchProcess(pid)


def access_denied(pid: int = 1000) -> psutil.AccessDenied:
    return psutil.AccessDenied(pid)
