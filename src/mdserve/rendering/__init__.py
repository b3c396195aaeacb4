"""Markdown rendering."""
from mdserve.rendering.engine import RenderedDocument, extract_title, render, render_document

__all__ = ["RenderedDocument", "extract_title", "render", "render_document"]
