"""Security-first path resolution inside the served root."""
from pathlib import Path

EXCLUDED_NAMES: frozenset[str] = frozenset({
    ".git",
    "node_modules",
    ".DS_Store",
    "__pycache__",
    ".env",
})

MARKDOWN_EXTENSIONS: frozenset[str] = frozenset({".md", ".markdown"})


class SecurityError(Exception):
    """Raised when a requested path escapes the served root."""

    def __init__(self, message: str, path: str) -> None:
        """Initialize security error.

        Args:
            message: Error description.
            path: The offending path value.
        """
        super().__init__(message)
        self.path = path


def resolve_path(root: Path, relative: str) -> Path:
    """Resolve a request path to an absolute path within the served root.

    Symlinks are resolved before the containment check, so a link pointing
    outside the root is rejected.

    Args:
        root: Absolute served root directory.
        relative: Path relative to the root. Leading slashes are ignored.

    Returns:
        Absolute resolved path. It is not required to exist.

    Raises:
        SecurityError: If the path contains a null byte or resolves outside
            the root.
    """
    if "\0" in relative:
        raise SecurityError("Path contains null byte", relative)

    root_path = root.resolve()
    resolved = (root_path / relative.lstrip("/\\")).resolve()

    if not resolved.is_relative_to(root_path):
        raise SecurityError(f"Path resolves outside served root: {root_path}", relative)

    return resolved


def is_excluded(name: str) -> bool:
    """Check if an entry should be hidden from directory listings.

    Args:
        name: Entry name.

    Returns:
        True if the entry should be hidden.
    """
    return name in EXCLUDED_NAMES or name.startswith(".")


def is_markdown(path: Path) -> bool:
    """Whether a path has a Markdown extension."""
    return path.suffix.lower() in MARKDOWN_EXTENSIONS
