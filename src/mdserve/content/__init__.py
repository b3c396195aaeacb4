"""Served-root path handling and directory listings."""

from mdserve.content.listing import ListingEntry, list_directory
from mdserve.content.paths import (
    EXCLUDED_NAMES,
    SecurityError,
    is_excluded,
    is_markdown,
    resolve_path,
)

__all__ = [
    "EXCLUDED_NAMES",
    "ListingEntry",
    "SecurityError",
    "is_excluded",
    "is_markdown",
    "list_directory",
    "resolve_path",
]
