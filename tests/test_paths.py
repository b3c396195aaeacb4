"""Path resolution and directory listing tests."""

from pathlib import Path

import pytest

from mdserve.content import SecurityError, is_excluded, is_markdown, list_directory, resolve_path


def test_resolve_path_inside_root(docs_root: Path) -> None:
    """Relative and slash-prefixed paths resolve inside the root."""
    assert resolve_path(docs_root, "a.md") == (docs_root / "a.md").resolve()
    assert resolve_path(docs_root, "/guide/intro.md") == (docs_root / "guide/intro.md").resolve()
    assert resolve_path(docs_root, "") == docs_root.resolve()


@pytest.mark.parametrize("relative", ["../secret.md", "guide/../../x", "a\0.md"])
def test_resolve_path_rejects_escapes(docs_root: Path, relative: str) -> None:
    """Traversal and null bytes raise SecurityError."""
    with pytest.raises(SecurityError) as exc_info:
        resolve_path(docs_root, relative)

    assert exc_info.value.path == relative


def test_resolve_path_rejects_symlink_out_of_root(docs_root: Path, tmp_path: Path) -> None:
    """Symlinks pointing outside the root are rejected."""
    outside = tmp_path / "outside.md"
    outside.write_text("secret", encoding="utf-8")
    (docs_root / "link.md").symlink_to(outside)

    with pytest.raises(SecurityError):
        resolve_path(docs_root, "link.md")


def test_exclusions_and_markdown_detection() -> None:
    """Dotfiles and tool directories are hidden; .md and .markdown render."""
    assert is_excluded(".git")
    assert is_excluded("node_modules")
    assert is_excluded(".hidden")
    assert not is_excluded("docs")
    assert is_markdown(Path("README.MD"))
    assert is_markdown(Path("notes.markdown"))
    assert not is_markdown(Path("notes.txt"))


def test_list_directory_orders_entries(docs_root: Path) -> None:
    """Directories come first, then files, case-insensitively sorted."""
    (docs_root / "B.md").write_text("", encoding="utf-8")

    entries = list_directory(docs_root, "/")

    assert [e.name for e in entries] == ["guide", "a.md", "B.md", "notes.txt"]
    assert entries[0].href == "/guide/"
    assert entries[0].is_directory


def test_list_directory_adds_parent_entry(docs_root: Path) -> None:
    """Non-root listings start with a link to the parent."""
    entries = list_directory(docs_root / "guide", "/guide/")

    assert entries[0].name == ".."
    assert entries[0].href == "/"
    assert entries[1].href == "/guide/intro.md"
