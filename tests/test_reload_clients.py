"""Client registry and fan-out tests."""

import json

import pytest

from mdserve.reload.clients import Client, ClientRegistry
from mdserve.reload.sink import QueueSink
from mdserve.reload.types import ReloadEvent, ReloadEventType

PATH = "/docs/a.md"


def frames(sink: QueueSink) -> list[dict[str, object]]:
    return [json.loads(frame) for frame in sink.drain()]


@pytest.mark.asyncio
async def test_register_sends_connected_event() -> None:
    """Registering a client pushes exactly one connected event."""
    registry = ClientRegistry()
    sink = QueueSink()
    registry.register(PATH, Client(PATH, sink))

    received = frames(sink)
    assert len(received) == 1
    assert received[0]["type"] == "connected"
    assert received[0]["filePath"] == PATH
    assert isinstance(received[0]["timestamp"], int)
    assert "message" not in received[0]


@pytest.mark.asyncio
async def test_deregister_returns_path_and_drops_empty_set() -> None:
    """Deregistering returns the client's path and forgets empty sets."""
    registry = ClientRegistry()
    client = Client(PATH, QueueSink())
    registry.register(PATH, client)

    assert registry.deregister(client.id) == PATH
    assert registry.paths() == []
    assert registry.deregister(client.id) is None


@pytest.mark.asyncio
async def test_notify_prunes_closed_client_and_delivers_to_open() -> None:
    """A closed client is pruned silently while the open one is notified."""
    registry = ClientRegistry()
    open_sink, closed_sink = QueueSink(), QueueSink()
    open_client = Client(PATH, open_sink)
    closed_client = Client(PATH, closed_sink)
    registry.register(PATH, open_client)
    registry.register(PATH, closed_client)
    open_sink.drain()
    closed_sink.close()

    delivered = registry.notify(PATH, ReloadEventType.CHANGE)

    assert delivered == 1
    assert [f["type"] for f in frames(open_sink)] == ["change"]
    assert registry.client_count(PATH) == 1
    assert registry.deregister(closed_client.id) is None
    assert open_client.last_update > 0


@pytest.mark.asyncio
async def test_notify_leaves_emptied_set_for_caller() -> None:
    """Pruning every client keeps the path entry until the caller clears it."""
    registry = ClientRegistry()
    sink = QueueSink()
    registry.register(PATH, Client(PATH, sink))
    sink.close()

    assert registry.notify(PATH, ReloadEventType.CHANGE) == 0
    assert registry.client_count(PATH) == 0
    assert PATH in registry.paths()


@pytest.mark.asyncio
async def test_error_event_carries_message() -> None:
    """Error events include the human-readable message."""
    registry = ClientRegistry()
    sink = QueueSink()
    registry.register(PATH, Client(PATH, sink))
    sink.drain()

    registry.notify(PATH, ReloadEventType.ERROR, "permission denied")

    (event,) = frames(sink)
    assert event["type"] == "error"
    assert event["message"] == "permission denied"


@pytest.mark.asyncio
async def test_notify_unknown_path_is_noop() -> None:
    """Notifying a path nobody watches delivers nothing."""
    assert ClientRegistry().notify("/nowhere.md", ReloadEventType.CHANGE) == 0


def test_reload_event_wire_shape() -> None:
    """Events serialize with camelCase keys and omit an absent message."""
    event = ReloadEvent(type=ReloadEventType.DELETED, file_path=PATH, timestamp=1700000000000)
    assert json.loads(event.to_json()) == {
        "type": "deleted",
        "filePath": PATH,
        "timestamp": 1700000000000,
    }


@pytest.mark.asyncio
async def test_queue_sink_drops_oldest_when_full() -> None:
    """A full sink discards its oldest frame instead of blocking."""
    sink = QueueSink(maxsize=2)
    for frame in ("one", "two", "three"):
        sink.push(frame)

    assert sink.drain() == ["two", "three"]
    assert sink.dropped_frames == 1


@pytest.mark.asyncio
async def test_queue_sink_get_returns_none_after_close() -> None:
    """Readers are woken with None once the sink closes."""
    sink = QueueSink()
    sink.push("frame")
    sink.close()

    assert await sink.get() == "frame"
    assert await sink.get() is None
    assert await sink.get() is None
