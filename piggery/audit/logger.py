"""
Sync Activity Logger

DESIGN DECISION: Cloud sync reports what it is doing in two places:
1. Structured local log (structlog, for debugging)
2. A rolling in-memory trail of the last few events, shown in the
   "Show Logs" panel next to the backup buttons

The trail is display-only. Nothing reads it back to make decisions, and a
logging failure never interrupts a sync.
"""

import logging
from collections import deque
from typing import Optional

import structlog

from piggery.models.audit import EventSeverity, SyncEvent, SyncOperation


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `level`."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))


class SyncActivityLog:
    """
    Rolling diagnostic trail for cloud sync.

    Keeps the most recent `max_entries` events; older ones fall off.
    """

    def __init__(self, max_entries: int = 30):
        self._events: deque[SyncEvent] = deque(maxlen=max_entries)
        self._logger = structlog.get_logger("piggery.sync")

    def record(
        self,
        operation: SyncOperation,
        message: str,
        severity: EventSeverity = EventSeverity.INFO,
        error_message: Optional[str] = None,
        **details,
    ) -> SyncEvent:
        """Append an event to the trail and mirror it to the structured log."""
        event = SyncEvent(
            operation=operation,
            severity=severity,
            message=message[:500],
            error_message=error_message,
            details=details,
        )
        self._events.append(event)

        log_dict = event.to_log_dict()
        if severity == EventSeverity.ERROR:
            self._logger.error("sync_event", **log_dict)
        elif severity == EventSeverity.WARNING:
            self._logger.warning("sync_event", **log_dict)
        elif severity == EventSeverity.DEBUG:
            self._logger.debug("sync_event", **log_dict)
        else:
            self._logger.info("sync_event", **log_dict)

        return event

    def info(self, operation: SyncOperation, message: str, **details) -> SyncEvent:
        return self.record(operation, message, EventSeverity.INFO, **details)

    def warning(self, operation: SyncOperation, message: str, **details) -> SyncEvent:
        return self.record(operation, message, EventSeverity.WARNING, **details)

    def error(
        self,
        operation: SyncOperation,
        message: str,
        error: Optional[BaseException] = None,
        **details,
    ) -> SyncEvent:
        return self.record(
            operation,
            message,
            EventSeverity.ERROR,
            error_message=str(error) if error else None,
            **details,
        )

    @property
    def events(self) -> list[SyncEvent]:
        """Events oldest first."""
        return list(self._events)

    def lines(self) -> list[str]:
        """The trail as 'HH:MM:SS: message' lines, oldest first."""
        return [event.display() for event in self._events]

    def clear(self) -> None:
        self._events.clear()
