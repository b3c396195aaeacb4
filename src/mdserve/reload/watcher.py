"""Single-file filesystem watch with write-stability detection."""

import os
import threading
import time
from collections.abc import Callable
from pathlib import Path

import structlog
from watchdog.events import (
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver
from watchdog.observers.polling import PollingObserver

from mdserve.reload.types import RawEvent

logger = structlog.get_logger()

RawEventCallback = Callable[[RawEvent], None]


def _decode(path: str | bytes) -> str:
    if isinstance(path, str):
        return path
    return bytes(path).decode("utf-8", errors="replace")


class _TargetHandler(FileSystemEventHandler):
    """Routes directory events that concern one file to its FileWatch."""

    def __init__(self, watch: "FileWatch") -> None:
        super().__init__()
        self._watch = watch

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        target = self._watch.path
        src = _decode(event.src_path)

        if isinstance(event, FileMovedEvent):
            if _decode(event.dest_path) == target or src == target:
                self._watch.on_raw_activity()
            return

        if src != target:
            return

        if isinstance(
            event,
            (FileModifiedEvent, FileCreatedEvent, FileClosedEvent, FileDeletedEvent),
        ):
            self._watch.on_raw_activity()


class FileWatch:
    """Watches one file and reports settled changes, deletion and errors.

    The file's parent directory is observed with watchdog. Raw activity
    starts a stability check that polls the file's size and mtime; a change
    is reported once they stop moving for ``stability_ms``. A file that
    stays missing for the same window is reported as deleted, which lets
    editors that save by rename-and-replace register as a change.

    Attributes:
        path: Absolute path of the watched file.
    """

    def __init__(
        self,
        path: str,
        emit: RawEventCallback,
        stability_ms: int = 100,
        poll_interval_ms: int = 100,
        use_polling: bool = False,
    ) -> None:
        """Initialize file watch.

        Args:
            path: Absolute path of the file to watch.
            emit: Called from watcher threads with each settled raw event.
            stability_ms: How long size and mtime must be unchanged.
            poll_interval_ms: Interval between stability checks, also used
                as the polling observer's scan interval.
            use_polling: Use the polling observer instead of native events.
        """
        self._path = path
        self._emit = emit
        self._stability_s = stability_ms / 1000.0
        self._poll_interval_s = max(poll_interval_ms, 1) / 1000.0
        self._use_polling = use_polling
        self._observer: BaseObserver | None = None
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._last_signature: tuple[int, int] | None = None
        self._stable_since = 0.0
        self._missing_since: float | None = None
        self._closed = False

    @property
    def path(self) -> str:
        """Absolute path of the watched file."""
        return self._path

    @property
    def is_polling(self) -> bool:
        """Whether the active observer is the polling fallback."""
        return isinstance(self._observer, PollingObserver)

    def start(self) -> None:
        """Start observing the file's parent directory.

        Falls back to the polling observer if native watching cannot start.

        Raises:
            OSError: If neither observer can be started.
        """
        directory = str(Path(self._path).parent)

        if not self._use_polling:
            try:
                self._observer = self._start_observer(Observer(), directory)
            except OSError as e:
                logger.warning(
                    "reload_native_watch_failed",
                    path=self._path,
                    error=str(e),
                )

        if self._observer is None:
            self._observer = self._start_observer(
                PollingObserver(timeout=self._poll_interval_s),
                directory,
            )

        logger.info("reload_watch_started", path=self._path, polling=self.is_polling)

    def _start_observer(self, observer: BaseObserver, directory: str) -> BaseObserver:
        observer.schedule(_TargetHandler(self), directory, recursive=False)
        observer.daemon = True
        observer.start()
        return observer

    def close(self) -> None:
        """Stop observing and cancel any stability check in flight.

        Idempotent.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

        if self._observer is not None:
            self._observer.stop()
            if self._observer is not threading.current_thread():
                self._observer.join(timeout=5.0)
            self._observer = None

        logger.info("reload_watch_stopped", path=self._path)

    def on_raw_activity(self) -> None:
        """Restart the stability window after raw filesystem activity."""
        with self._lock:
            if self._closed:
                return
            self._last_signature = None
            self._missing_since = None
            if self._timer is None:
                self._schedule_check()

    def _schedule_check(self) -> None:
        timer = threading.Timer(self._poll_interval_s, self._check_stability)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _check_stability(self) -> None:
        now = time.monotonic()
        event: RawEvent | None = None

        try:
            stat = os.stat(self._path)
        except FileNotFoundError:
            stat = None
        except OSError as e:
            event = RawEvent(kind="error", path=self._path, message=str(e))
            stat = None

        with self._lock:
            self._timer = None
            if self._closed:
                return

            if event is None and stat is None:
                if self._missing_since is None:
                    self._missing_since = now
                if now - self._missing_since >= self._stability_s:
                    event = RawEvent(kind="deleted", path=self._path)
                else:
                    self._schedule_check()
            elif event is None and stat is not None:
                self._missing_since = None
                signature = (stat.st_size, stat.st_mtime_ns)
                if signature != self._last_signature:
                    self._last_signature = signature
                    self._stable_since = now
                    self._schedule_check()
                elif now - self._stable_since >= self._stability_s:
                    event = RawEvent(kind="change", path=self._path)
                else:
                    self._schedule_check()

        if event is not None:
            self._deliver(event)

    def _deliver(self, event: RawEvent) -> None:
        logger.debug("reload_watch_emit", path=self._path, kind=event.kind)
        try:
            self._emit(event)
        except Exception as e:
            logger.error("reload_watch_callback_error", error=str(e), path=self._path)
