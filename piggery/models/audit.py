"""
Diagnostic Event Models

Cloud sync keeps a short rolling trail of what it did so the user can see
why a backup failed. The trail is for display only; nothing reads it back
to make decisions.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SyncOperation(str, Enum):
    """Which cloud operation an event belongs to."""
    INIT = "init"
    CONFIG = "config"
    AUTH = "auth"
    FIND = "find"
    SAVE = "save"
    LOAD = "load"
    IMPORT = "import"
    EXPORT = "export"
    STORAGE = "storage"


class EventSeverity(str, Enum):
    """Severity level for diagnostic events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class SyncEvent(BaseModel):
    """A single entry in the diagnostic trail."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="Local wall-clock time of the event"
    )
    operation: SyncOperation
    severity: EventSeverity = EventSeverity.INFO
    message: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def display(self) -> str:
        """Render as the 'HH:MM:SS: message' line shown in the log panel."""
        return f"{self.timestamp.strftime('%H:%M:%S')}: {self.message}"

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "operation": self.operation.value,
            "severity": self.severity.value,
            "message": self.message,
            "details": self.details,
            "error_message": self.error_message,
        }
