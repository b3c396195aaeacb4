"""Page serving tests: listings, rendered Markdown and raw files."""

from pathlib import Path

from fastapi.testclient import TestClient

from mdserve.app import create_app
from mdserve.config import Settings


def test_root_lists_directory(client: TestClient) -> None:
    """The root shows directories first and hides dotfiles."""
    response = client.get("/")

    assert response.status_code == 200
    body = response.text
    assert "Index of /" in body
    assert 'href="/guide/"' in body
    assert 'href="/a.md"' in body
    assert ".git" not in body
    assert body.index('href="/guide/"') < body.index('href="/a.md"')


def test_subdirectory_links_to_parent(client: TestClient) -> None:
    """Subdirectory listings link back to their parent."""
    response = client.get("/guide/")

    assert response.status_code == 200
    assert 'href="/guide/intro.md"' in response.text
    assert 'href="/"' in response.text


def test_markdown_is_rendered(client: TestClient) -> None:
    """Markdown files render to HTML with title and live-reload client."""
    response = client.get("/a.md")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    body = response.text
    assert "<title>Alpha</title>" in body
    assert '<h2 id="section">Section</h2>' in body
    assert "/api/live-reload?file=" in body
    assert '"a.md"' in body


def test_markdown_without_watch_has_no_reload_client(docs_root: Path) -> None:
    """Pages served without live reload do not open an event stream."""
    app = create_app(Settings(directory=docs_root, watch=False))
    with TestClient(app) as test_client:
        response = test_client.get("/guide/intro.md")

    assert response.status_code == 200
    assert "EventSource" not in response.text


def test_other_files_served_raw(client: TestClient) -> None:
    """Non-Markdown files are returned as-is."""
    response = client.get("/notes.txt")

    assert response.status_code == 200
    assert response.text == "plain text\n"


def test_missing_path_returns_404(client: TestClient) -> None:
    """Unknown paths are plain-text 404s."""
    response = client.get("/nope.md")

    assert response.status_code == 404
    assert response.text == "Not found"


def test_traversal_returns_403(client: TestClient) -> None:
    """Encoded parent segments cannot escape the served root."""
    response = client.get("/..%2F..%2Fetc%2Fpasswd")

    assert response.status_code == 403
