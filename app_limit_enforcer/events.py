import uuid
import logging
import threading
from dataclasses import dataclass
from typing import Callable

from .models import AppLimitRule


@dataclass(frozen=True)
class WarningTriggered:
    rule: AppLimitRule
    remaining_minutes: int


@dataclass(frozen=True)
class AppKilled:
    rule: AppLimitRule
    process_name: str


@dataclass(frozen=True)
class AppKillFailed:
    rule: AppLimitRule
    process_name: str
    error_message: str


@dataclass(frozen=True)
class UsageUpdated:
    rule_id: uuid.UUID
    used_seconds: int
    limit_seconds: int


class EventDispatcher:
    """Delivers monitor events to subscribed handlers, synchronously and in emit order."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger
        self._lock = threading.Lock()
        self._handlers: dict[type, list[Callable]] = {}

    def subscribe(self, event_type: type, handler: Callable) -> None:
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: type, handler: Callable) -> None:
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def emit(self, event) -> None:
        with self._lock:
            handlers = list(self._handlers.get(type(event), []))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                self._logger.exception(f"Event handler failed for {type(event).__name__}")
