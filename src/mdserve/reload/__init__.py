"""Live-reload subsystem: per-file watches fanned out to streaming clients."""
from mdserve.reload.clients import Client, ClientRegistry
from mdserve.reload.coordinator import ReloadCoordinator
from mdserve.reload.debounce import DebounceTimers
from mdserve.reload.sink import ClientClosedError, ClientSink, QueueSink
from mdserve.reload.types import RawEvent, ReloadEvent, ReloadEventType, ReloadStats
from mdserve.reload.watcher import FileWatch

__all__ = [
    "Client",
    "ClientClosedError",
    "ClientRegistry",
    "ClientSink",
    "DebounceTimers",
    "FileWatch",
    "QueueSink",
    "RawEvent",
    "ReloadCoordinator",
    "ReloadEvent",
    "ReloadEventType",
    "ReloadStats",
]
