"""Markdown to HTML rendering."""

import markdown
from pydantic import BaseModel

from mdserve.rendering.extensions import MdserveExtension

EXTENSIONS: tuple[str, ...] = (
    "fenced_code",
    "tables",
    "sane_lists",
    "toc",
)

EXTENSION_CONFIGS: dict[str, dict[str, object]] = {
    "toc": {"permalink": False, "toc_depth": "2-6"},
}


class RenderedDocument(BaseModel):
    """Rendered Markdown document.

    Attributes:
        html: Document body as HTML.
        toc_html: Table of contents for headings h2-h6.
        title: First level-one heading, if any.
    """

    html: str
    toc_html: str
    title: str | None = None


def _create_markdown() -> markdown.Markdown:
    return markdown.Markdown(
        extensions=[*EXTENSIONS, MdserveExtension()],
        extension_configs=EXTENSION_CONFIGS,
        output_format="html",
    )


def extract_title(content: str) -> str | None:
    """Extract the first H1 heading from Markdown content.

    Args:
        content: Raw Markdown content.

    Returns:
        The title text, or None if no H1 found.
    """
    for line in content.split("\n"):
        stripped = line.strip()
        if stripped.startswith("# "):
            return stripped[2:].strip()
    return None


def render(content: str) -> str:
    """Render Markdown content to HTML.

    Args:
        content: Raw Markdown string.

    Returns:
        Rendered HTML string.
    """
    return _create_markdown().convert(content)


def render_document(content: str) -> RenderedDocument:
    """Render Markdown content and collect its table of contents.

    Args:
        content: Raw Markdown string.

    Returns:
        Rendered body, table of contents and title.
    """
    md = _create_markdown()
    html = md.convert(content)
    return RenderedDocument(
        html=html,
        toc_html=getattr(md, "toc", ""),
        title=extract_title(content),
    )
