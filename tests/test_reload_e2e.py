"""Live reload against real files, from write to delivered frame."""

import asyncio
import json
from pathlib import Path

import pytest

from mdserve.reload.clients import Client
from mdserve.reload.coordinator import ReloadCoordinator
from mdserve.reload.sink import QueueSink

from conftest import WaitUntil


def frames(sink: QueueSink) -> list[dict]:
    return [json.loads(frame) for frame in sink.drain()]


@pytest.fixture
def doc(tmp_path: Path) -> Path:
    path = (tmp_path / "page.md").resolve()
    path.write_text("# Page\n", encoding="utf-8")
    return path


@pytest.mark.asyncio
async def test_two_quick_writes_produce_one_change(doc: Path, wait_until: WaitUntil) -> None:
    """Writes 100ms apart are announced once, after the debounce period."""
    coordinator = ReloadCoordinator(
        debounce_ms=500, stability_ms=50, poll_interval_ms=50, use_polling=True
    )
    await coordinator.start()
    sink = QueueSink()
    coordinator.watch(str(doc), Client(str(doc), sink))
    assert [f["type"] for f in frames(sink)] == ["connected"]
    await asyncio.sleep(0.2)

    loop = asyncio.get_running_loop()
    doc.write_text("# Page\n\nfirst edit\n", encoding="utf-8")
    await asyncio.sleep(0.1)
    doc.write_text("# Page\n\nsecond edit, longer\n", encoding="utf-8")
    last_write_at = loop.time()

    received: list[dict] = []

    def got_change() -> bool:
        received.extend(frames(sink))
        return any(f["type"] == "change" for f in received)

    assert await wait_until(got_change, 5.0)
    assert loop.time() - last_write_at >= 0.5 - 0.01

    await asyncio.sleep(0.8)
    received.extend(frames(sink))
    assert [f["type"] for f in received] == ["change"]
    assert received[0]["filePath"] == str(doc)
    coordinator.cleanup()


@pytest.mark.asyncio
async def test_delete_notifies_and_releases_watch(doc: Path, wait_until: WaitUntil) -> None:
    """Removing the file sends deleted and leaves nothing watched."""
    coordinator = ReloadCoordinator(
        debounce_ms=100, stability_ms=50, poll_interval_ms=50, use_polling=True
    )
    await coordinator.start()
    sink = QueueSink()
    coordinator.watch(str(doc), Client(str(doc), sink))
    frames(sink)
    await asyncio.sleep(0.2)

    doc.unlink()

    assert await wait_until(lambda: coordinator.stats().watched_files == 0, 5.0)
    assert [f["type"] for f in frames(sink)] == ["deleted"]
    assert coordinator.stats().total_clients == 0
    coordinator.cleanup()
