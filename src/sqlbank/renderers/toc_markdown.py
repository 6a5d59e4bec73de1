"""
Markdown table-of-contents renderer.

Generates one TOC per document, ready to paste between the
``<!-- toc -->`` markers (or written there by ``sqlbank toc --write``).
"""

from typing import Any

from sqlbank.indexer import TocBuilder
from sqlbank.model import Document
from sqlbank.renderers.base import BaseRenderer


class TocMarkdownRenderer(BaseRenderer):
    """Render Markdown tables of contents.

    Features:
        - One TOC per document, keyed by the source path
        - Same anchors as the document headings
        - Nested bullets, two spaces per level

    Tags:
        - renderer
        - toc
        - markdown
    """

    output_format = "markdown"

    def __init__(self, bank, toc_builder: TocBuilder | None = None, **kwargs: Any):
        super().__init__(bank, **kwargs)
        self.toc = toc_builder or TocBuilder()

    def render(self) -> dict[str, str]:
        """Generate a TOC for every document.

        Returns:
            Mapping of source path to TOC Markdown
        """
        return {str(document.path): self.render_document(document) for document in self.bank}

    def render_document(self, document: Document) -> str:
        """TOC Markdown for one document (ends with a newline when non-empty)."""
        toc = self.toc.generate(document)
        return f"{toc}\n" if toc else ""
