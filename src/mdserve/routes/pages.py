"""Page serving: directory listings, rendered Markdown and raw files."""
import asyncio
from pathlib import Path

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, HTMLResponse, PlainTextResponse, Response

from mdserve.content.listing import list_directory
from mdserve.content.paths import SecurityError, is_markdown, resolve_path
from mdserve.rendering import render_document
from mdserve.templating import render_template

logger = structlog.get_logger()

router = APIRouter(tags=["pages"])


def _parent_href(relative: str) -> str:
    parent = relative.rstrip("/").rsplit("/", 1)[0] if "/" in relative else ""
    return "/" + parent + "/" if parent else "/"


async def _render_markdown_page(request: Request, target: Path, relative: str) -> Response:
    try:
        content = await asyncio.to_thread(target.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("page_read_failed", path=str(target), error=str(e))
        return PlainTextResponse("Internal server error", status_code=500)

    document = render_document(content)
    html = render_template(
        "markdown.html",
        title=document.title or target.stem,
        content=document.html,
        toc_html=document.toc_html,
        parent_href=_parent_href(relative),
        reload_enabled=request.app.state.reload_coordinator is not None,
        reload_file=relative,
    )
    return HTMLResponse(html)


@router.get("/{request_path:path}", response_model=None)
async def serve_path(request: Request, request_path: str) -> Response:
    """Serve a directory listing, a rendered Markdown file or a raw file.

    Args:
        request: FastAPI request object.
        request_path: Path relative to the served root.

    Returns:
        HTML page, file response, or a plain-text 403/404/500.
    """
    root: Path = request.app.state.settings.root

    try:
        target = resolve_path(root, request_path)
    except SecurityError as e:
        logger.warning("page_path_rejected", path=e.path, reason=str(e))
        return PlainTextResponse("Forbidden: Access denied", status_code=403)

    if not target.exists():
        return PlainTextResponse("Not found", status_code=404)

    relative = target.relative_to(root.resolve()).as_posix()
    if relative == ".":
        relative = ""

    if target.is_dir():
        url_path = "/" + relative + "/" if relative else "/"
        entries = list_directory(target, url_path)
        return HTMLResponse(
            render_template("directory.html", request_path=url_path, entries=entries)
        )

    if is_markdown(target):
        return await _render_markdown_page(request, target, relative)

    return FileResponse(target)
