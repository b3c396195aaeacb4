"""Live-reload coordinator owning watches, clients and debounce timers."""

import asyncio
import contextlib
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

import structlog

from mdserve.reload.clients import Client, ClientRegistry
from mdserve.reload.debounce import DebounceTimers
from mdserve.reload.types import RawEvent, ReloadEventType, ReloadStats
from mdserve.reload.watcher import FileWatch, RawEventCallback

logger = structlog.get_logger()


class WatchHandle(Protocol):
    """A started filesystem watch that can be closed."""

    def start(self) -> None: ...

    def close(self) -> None: ...


WatchFactory = Callable[[str, RawEventCallback], WatchHandle]


class ReloadCoordinator:
    """Multiplexes per-file watches across streaming clients.

    Registry state (clients, watches, timers) is only touched on the event
    loop thread. Watch threads hand raw events over through ``submit``,
    which enqueues onto a bounded queue drained by a single consumer task
    that applies debouncing and fan-out.

    Attributes:
        debounce_ms: Quiet period before a change is announced.
    """

    def __init__(
        self,
        debounce_ms: int = 500,
        stability_ms: int = 100,
        poll_interval_ms: int = 100,
        use_polling: bool = False,
        queue_size: int = 1000,
        watch_factory: WatchFactory | None = None,
    ) -> None:
        """Initialize coordinator.

        Args:
            debounce_ms: Quiet period before a change is announced.
            stability_ms: Write-stability window for file watches.
            poll_interval_ms: Stability check and polling interval.
            use_polling: Force the polling observer.
            queue_size: Capacity of the raw event queue.
            watch_factory: Builds a watch for a path. Defaults to FileWatch.
        """
        self._debounce_ms = debounce_ms
        self._queue_size = queue_size
        self._watch_factory = watch_factory or (
            lambda path, emit: FileWatch(
                path,
                emit,
                stability_ms=stability_ms,
                poll_interval_ms=poll_interval_ms,
                use_polling=use_polling,
            )
        )
        self._clients = ClientRegistry()
        self._watches: dict[str, WatchHandle] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[RawEvent] | None = None
        self._timers: DebounceTimers | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._dropped_count = 0

    @property
    def debounce_ms(self) -> int:
        """Quiet period before a change is announced."""
        return self._debounce_ms

    @property
    def is_running(self) -> bool:
        """Whether the consumer task is active."""
        return self._consumer is not None and not self._consumer.done()

    @property
    def dropped_events(self) -> int:
        """Raw events discarded because the queue was full."""
        return self._dropped_count

    def is_watching(self, path: str) -> bool:
        """Whether a filesystem watch is active for a path."""
        return self._resolve(path) in self._watches

    def stats(self) -> ReloadStats:
        """Snapshot of watched files, clients and pending notifications."""
        return ReloadStats(
            watched_files=len(self._watches),
            total_clients=self._clients.client_count(),
            pending_debounces=self._timers.pending if self._timers else 0,
        )

    async def start(self) -> None:
        """Bind to the running loop and start consuming raw events."""
        if self.is_running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self._queue_size)
        self._timers = DebounceTimers(self._loop, self._on_debounced, self._debounce_ms)
        self._consumer = asyncio.create_task(self._consume())
        logger.info("reload_coordinator_started", debounce_ms=self._debounce_ms)

    def watch(self, path: str, client: Client) -> None:
        """Register a client for a file, starting a watch if needed.

        The client receives its connected event before this returns.

        Args:
            path: File to watch.
            client: Client to register.

        Raises:
            RuntimeError: If the coordinator has not been started.
        """
        if self._loop is None:
            raise RuntimeError("ReloadCoordinator.start() has not been called")

        abs_path = self._resolve(path)
        client.file_path = abs_path
        self._clients.register(abs_path, client)

        if abs_path in self._watches:
            return

        handle = self._watch_factory(abs_path, self.submit)
        try:
            handle.start()
        except OSError as e:
            logger.error("reload_watch_start_failed", path=abs_path, error=str(e))
            self._clients.notify(abs_path, ReloadEventType.ERROR, str(e))
            with contextlib.suppress(Exception):
                handle.close()
            self._clients.clear_path(abs_path)
            return

        self._watches[abs_path] = handle

    def unwatch(self, client_id: str) -> None:
        """Remove a client, closing its file's watch if it was the last.

        No-op for unknown client ids.

        Args:
            client_id: Identifier of the client to remove.
        """
        path = self._clients.deregister(client_id)
        if path is None:
            return

        logger.debug("reload_client_unwatched", client_id=client_id, path=path)
        if self._clients.client_count(path) == 0:
            self._stop_watching(path)

    def submit(self, event: RawEvent) -> None:
        """Hand a raw event to the coordinator from any thread.

        Args:
            event: Raw filesystem observation.
        """
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._enqueue, event)
        except RuntimeError:
            logger.debug("reload_event_after_shutdown", path=event.path, kind=event.kind)

    def cleanup(self) -> None:
        """Cancel timers, close watches and drop all clients.

        Timers are cancelled before watches are closed. Safe to call with
        nothing active and safe to call more than once.
        """
        if self._timers is not None:
            self._timers.cancel_all()

        for path, handle in list(self._watches.items()):
            self._close_handle(path, handle)
        self._watches.clear()

        for client in self._clients.clear():
            client.sink.close()

        if self._consumer is not None:
            self._consumer.cancel()
            self._consumer = None

        logger.info("reload_cleanup_complete")

    def _enqueue(self, event: RawEvent) -> None:
        if self._queue is None:
            return
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self._dropped_count += 1
            logger.warning(
                "reload_event_dropped",
                path=event.path,
                kind=event.kind,
                dropped=self._dropped_count,
            )

    async def _consume(self) -> None:
        assert self._queue is not None
        try:
            while True:
                event = await self._queue.get()
                try:
                    self._dispatch(event)
                except Exception as e:
                    logger.error(
                        "reload_dispatch_error",
                        error=str(e),
                        path=event.path,
                        kind=event.kind,
                    )
        except asyncio.CancelledError:
            logger.debug("reload_consumer_stopped")
            raise

    def _dispatch(self, event: RawEvent) -> None:
        path = event.path
        if path not in self._watches:
            return

        if self._clients.client_count(path) == 0:
            self._stop_watching(path)
            return

        if event.kind == "change":
            assert self._timers is not None
            self._timers.on_raw_change(path)
        elif event.kind == "deleted":
            self._clients.notify(path, ReloadEventType.DELETED)
            self._stop_watching(path)
        else:
            logger.warning("reload_watch_error", path=path, error=event.message)
            self._clients.notify(path, ReloadEventType.ERROR, event.message or "watch error")
            self._stop_watching(path)

    def _on_debounced(self, path: str) -> None:
        if path not in self._watches:
            return
        self._clients.notify(path, ReloadEventType.CHANGE)
        if self._clients.client_count(path) == 0:
            self._stop_watching(path)

    def _stop_watching(self, path: str) -> None:
        if self._timers is not None:
            self._timers.cancel(path)

        handle = self._watches.pop(path, None)
        if handle is not None:
            self._close_handle(path, handle)

        self._clients.clear_path(path)

    @staticmethod
    def _close_handle(path: str, handle: WatchHandle) -> None:
        try:
            handle.close()
        except Exception as e:
            logger.error("reload_watch_close_error", path=path, error=str(e))

    @staticmethod
    def _resolve(path: str) -> str:
        return str(Path(path).resolve())
