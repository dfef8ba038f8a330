"""
Operator logs and publish status events.

Operators read JSON log lines produced by ``JSONLogger``. Whoever
started the publish (a UI, a CLI) receives ``PublishEvent``s through an
injected notifier, which is any callable taking one event. The messages
match what the publish UI displays, e.g. "start publish luis" or
"Assigning to luis app id: <id>".
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class LogLevel(Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# =============================================================================
# Structured logging
# =============================================================================


@dataclass
class JSONLogger:
    """
    Writes one JSON object per log call to a stdlib logger.

    Fields: ``timestamp``, ``level``, ``message``, then ``extra_context``,
    then the call's keyword arguments, and ``request_id`` when set::

        {"timestamp": "...", "level": "info",
         "message": "Assigning to luis app id: abc-123",
         "bot": "Foo", "request_id": "5c1f..."}
    """

    name: str = "lupublish"
    request_id: str | None = None
    extra_context: dict[str, Any] = field(default_factory=dict)
    _sink: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._sink = logging.getLogger(self.name)

    def log(self, level: LogLevel, message: str, **fields: Any) -> None:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "message": message,
        }
        entry.update(self.extra_context)
        entry.update(fields)
        if self.request_id:
            entry["request_id"] = self.request_id

        emit = getattr(self._sink, level.value)
        emit(json.dumps(entry, default=str))

    def debug(self, message: str, **fields: Any) -> None:
        self.log(LogLevel.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self.log(LogLevel.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.log(LogLevel.WARNING, message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self.log(LogLevel.ERROR, message, **fields)


# =============================================================================
# Status events
# =============================================================================


class DeployStatus(str, Enum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class PublishEvent:
    """One status update of a running publish."""

    status: DeployStatus
    message: str
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "message": self.message, **self.context}


class Notifier(Protocol):
    def __call__(self, event: PublishEvent) -> None: ...


class LoggingNotifier:
    """Forwards events to a JSONLogger; ERROR events log at error level."""

    def __init__(self, json_logger: JSONLogger | None = None):
        self._log = json_logger or JSONLogger(name="lupublish.publish")

    def __call__(self, event: PublishEvent) -> None:
        level = LogLevel.ERROR if event.status is DeployStatus.ERROR else LogLevel.INFO
        self._log.log(level, event.message, **event.context)


@dataclass
class CollectingNotifier:
    """Keeps events in memory so they can be returned in one response."""

    events: list[PublishEvent] = field(default_factory=list)

    def __call__(self, event: PublishEvent) -> None:
        self.events.append(event)

    @property
    def messages(self) -> list[str]:
        return [event.message for event in self.events]

    def errors(self) -> list[PublishEvent]:
        return [event for event in self.events if event.status is DeployStatus.ERROR]

    def clear(self) -> None:
        self.events.clear()


def notify(
    notifier: Notifier | None,
    status: DeployStatus,
    message: str,
    **context: Any,
) -> None:
    """Deliver a status event. A broken notifier is logged and otherwise ignored."""
    if notifier is None:
        return
    event = PublishEvent(status=status, message=message, context=context)
    try:
        notifier(event)
    except Exception as e:
        logger.error(f"Could not deliver status '{message}': {e}")


__all__ = [
    "CollectingNotifier",
    "DeployStatus",
    "JSONLogger",
    "LogLevel",
    "LoggingNotifier",
    "Notifier",
    "PublishEvent",
    "notify",
]
