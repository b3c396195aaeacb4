"""Event types for the live-reload subsystem."""
import time
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ReloadEventType(str, Enum):
    """Kinds of notifications pushed to live-reload clients."""

    CONNECTED = "connected"
    CHANGE = "change"
    DELETED = "deleted"
    ERROR = "error"


RawEventKind = Literal["change", "deleted", "error"]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ReloadEvent(BaseModel):
    """Notification delivered to a streaming client.

    Attributes:
        type: Event kind.
        file_path: Absolute path of the watched file (``filePath`` on the wire).
        timestamp: Epoch milliseconds when the event was produced.
        message: Human-readable description, only set for error events.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: ReloadEventType
    file_path: str = Field(alias="filePath")
    timestamp: int = Field(default_factory=now_ms)
    message: str | None = None

    def to_json(self) -> str:
        """Serialize to the compact JSON wire shape."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class RawEvent(BaseModel):
    """Undebounced filesystem observation produced by a file watch.

    Attributes:
        kind: What the watch observed.
        path: Absolute path of the watched file.
        message: Error description when kind is ``error``.
    """

    kind: RawEventKind
    path: str
    message: str | None = None


class ReloadStats(BaseModel):
    """Snapshot of live-reload resource usage."""

    watched_files: int
    total_clients: int
    pending_debounces: int
