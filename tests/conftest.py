"""Pytest configuration and fixtures."""

import asyncio
import sys
from collections.abc import Awaitable, Callable, Iterator
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from mdserve.app import create_app
from mdserve.config import Settings
from mdserve.reload.types import RawEvent

WaitUntil = Callable[[Callable[[], bool], float], Awaitable[bool]]


class FakeWatch:
    """In-memory stand-in for a filesystem watch."""

    def __init__(
        self,
        path: str,
        emit: Callable[[RawEvent], None],
        fail_with: OSError | None = None,
    ) -> None:
        self.path = path
        self.emit = emit
        self.fail_with = fail_with
        self.started = False
        self.closed = False

    def start(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.started = True

    def close(self) -> None:
        self.closed = True


class FakeWatchFactory:
    """Records every watch the coordinator creates."""

    def __init__(self) -> None:
        self.watches: list[FakeWatch] = []
        self.fail_with: OSError | None = None

    def __call__(self, path: str, emit: Callable[[RawEvent], None]) -> FakeWatch:
        watch = FakeWatch(path, emit, self.fail_with)
        self.watches.append(watch)
        return watch

    def open_watches(self, path: str | None = None) -> list[FakeWatch]:
        return [
            w for w in self.watches
            if w.started and not w.closed and (path is None or w.path == path)
        ]


@pytest.fixture
def fake_watches() -> FakeWatchFactory:
    """Watch factory that never touches the filesystem."""
    return FakeWatchFactory()


@pytest.fixture
def wait_until() -> WaitUntil:
    """Poll a predicate on the running loop until it holds or times out."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
        deadline = asyncio.get_running_loop().time() + timeout
        while not predicate():
            if asyncio.get_running_loop().time() > deadline:
                return False
            await asyncio.sleep(0.01)
        return True

    return _wait


@pytest.fixture
def docs_root(tmp_path: Path) -> Path:
    """Served root with a few Markdown files and a subdirectory."""
    root = tmp_path / "docs"
    root.mkdir()
    (root / "a.md").write_text("# Alpha\n\n## Section\n\nBody text.\n", encoding="utf-8")
    (root / "notes.txt").write_text("plain text\n", encoding="utf-8")
    (root / "guide").mkdir()
    (root / "guide" / "intro.md").write_text("# Intro\n", encoding="utf-8")
    (root / ".git").mkdir()
    return root


@pytest.fixture
def settings(docs_root: Path) -> Settings:
    """Test settings with live reload enabled."""
    return Settings(
        directory=docs_root,
        host="127.0.0.1",
        port=3000,
        watch=True,
        watch_debounce=50,
    )


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    """Test client with the app lifespan running."""
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client
