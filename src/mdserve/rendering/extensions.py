"""Custom Markdown extensions."""
import re

from markdown import Extension, Markdown
from markdown.postprocessors import Postprocessor
from markdown.preprocessors import Preprocessor

MERMAID_BLOCK_PATTERN = re.compile(
    r'<pre><code class="language-mermaid">(.*?)</code></pre>',
    re.DOTALL,
)

TOC_ALIAS_PATTERN = re.compile(r"^\s*\[\[toc\]\]\s*$", re.IGNORECASE)


class MermaidPostprocessor(Postprocessor):
    """Turn fenced ``mermaid`` code blocks into mermaid.js containers."""

    def run(self, text: str) -> str:
        return MERMAID_BLOCK_PATTERN.sub(r'<pre class="mermaid">\1</pre>', text)


class TocAliasPreprocessor(Preprocessor):
    """Accept ``[[toc]]`` as an alias for the ``[TOC]`` marker."""

    def run(self, lines: list[str]) -> list[str]:
        return ["[TOC]" if TOC_ALIAS_PATTERN.match(line) else line for line in lines]


class MdserveExtension(Extension):
    """Registers the mermaid and TOC alias processors."""

    def extendMarkdown(self, md: Markdown) -> None:  # noqa: N802
        md.preprocessors.register(TocAliasPreprocessor(md), "toc_alias", 40)
        md.postprocessors.register(MermaidPostprocessor(md), "mermaid", 5)
