"""Directory listings for the page-serving routes."""

from pathlib import Path

import structlog
from pydantic import BaseModel

from mdserve.content.paths import is_excluded

logger = structlog.get_logger()


class ListingEntry(BaseModel):
    """One row in a directory listing.

    Attributes:
        name: Display name.
        is_directory: Whether the entry is a directory.
        href: URL path the entry links to. Directories end with a slash.
    """

    name: str
    is_directory: bool
    href: str


def _join_url(base: str, name: str) -> str:
    if not base.endswith("/"):
        base += "/"
    return base + name


def list_directory(directory: Path, request_path: str) -> list[ListingEntry]:
    """List a directory, directories first then files, alphabetically.

    Hidden and excluded names are skipped. A ``..`` entry pointing at the
    parent is prepended unless ``request_path`` is the root.

    Args:
        directory: Absolute directory to list.
        request_path: URL path the directory was requested under.

    Returns:
        Ordered listing entries.
    """
    entries: list[ListingEntry] = []

    for item in directory.iterdir():
        if is_excluded(item.name):
            continue
        try:
            is_dir = item.is_dir()
        except OSError as e:
            logger.warning("listing_stat_failed", path=str(item), error=str(e))
            continue
        href = _join_url(request_path, item.name)
        entries.append(
            ListingEntry(
                name=item.name,
                is_directory=is_dir,
                href=href + "/" if is_dir else href,
            )
        )

    entries.sort(key=lambda e: (not e.is_directory, e.name.lower()))

    normalized = request_path.rstrip("/")
    if normalized:
        parent = normalized.rsplit("/", 1)[0]
        entries.insert(0, ListingEntry(name="..", is_directory=True, href=parent + "/"))

    return entries
