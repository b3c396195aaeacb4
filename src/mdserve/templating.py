"""Jinja2 environment for HTML pages."""
from functools import lru_cache
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape


@lru_cache(maxsize=1)
def get_environment() -> Environment:
    """Shared template environment loading from ``mdserve/templates``."""
    return Environment(
        loader=PackageLoader("mdserve", "templates"),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_template(name: str, **context: Any) -> str:
    """Render a template to a string.

    Args:
        name: Template file name.
        context: Template variables.

    Returns:
        Rendered HTML.
    """
    return get_environment().get_template(name).render(**context)
