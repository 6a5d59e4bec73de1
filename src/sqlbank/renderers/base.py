"""
Base renderer for question bank output.

Provides common functionality for all renderers, including template
loading and the Markdown filters templates use.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from sqlbank.errors import TemplateNotFoundError
from sqlbank.model import Document, QuestionBank
from sqlbank.renderers.markdown_html import HtmlConverter, inline_html


class BaseRenderer(ABC):
    """Base class for question bank renderers.

    Manifesto:
        Renderers turn a loaded bank into output files. Templates handle
        page layout; renderers assemble the data and decide file names.

    Architecture:
        ```
        QuestionBank
              │
              ▼
        Renderer.render()
              │
              ├──► _get_metadata() (title, stats, timestamp)
              │
              ▼
        Jinja2 Template (filters: inline_md, markdown, anchor_link)
              │
              ▼
        {relative path: content}
        ```

    Features:
        - Load Jinja2 templates from a configurable directory
        - HTML autoescaping for ``.html`` templates
        - Shared metadata (title, counts, generation time)
        - Stable output paths per document

    Tags:
        - renderer
        - template
        - jinja2
        - core_infrastructure

    Doc-Types:
        - API_REFERENCE (section: "Renderers Module", priority: 7)
    """

    # Output format this renderer produces
    output_format: str = ""

    # Template file name
    template_name: str = ""

    def __init__(
        self,
        bank: QuestionBank,
        template_dir: Path | None = None,
        site_title: str = "SQL Interview Questions",
        include_timestamp: bool = True,
    ):
        """Initialize the renderer.

        Args:
            bank: Loaded question bank
            template_dir: Directory containing templates
            site_title: Title for index pages
            include_timestamp: Stamp output with the generation time
        """
        self.bank = bank
        self.site_title = site_title
        self.include_timestamp = include_timestamp

        if template_dir is None:
            template_dir = Path(__file__).parent.parent / "templates"
        self.template_dir = Path(template_dir)

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

        self.env.filters["inline_md"] = inline_html
        self.env.filters["anchor_link"] = self._anchor_link_filter
        self.env.filters["markdown"] = self._markdown_filter

    @abstractmethod
    def render(self) -> dict[str, str]:
        """Render the output.

        Returns:
            Mapping of relative output path to file content
        """
        pass

    def _get_template(self, template_name: str | None = None):
        """Load a Jinja2 template.

        Args:
            template_name: Template file name (uses self.template_name if not specified)

        Returns:
            Jinja2 Template object

        Raises:
            TemplateNotFoundError: If the template does not exist
        """
        name = template_name or self.template_name
        try:
            return self.env.get_template(name)
        except TemplateNotFound as e:
            raise TemplateNotFoundError(name, str(self.template_dir)) from e

    def _get_metadata(self) -> dict[str, Any]:
        """Get common metadata for templates."""
        return {
            "site_title": self.site_title,
            "generated_at": datetime.now() if self.include_timestamp else None,
            "stats": self.bank.stats(),
        }

    def page_path(self, document: Document) -> PurePosixPath:
        """Relative output path of a document's page.

        Mirrors the source layout with an ``.html`` suffix. A top-level
        ``index.md`` becomes ``index-page.html`` so it does not replace the
        site index.
        """
        source = Path(document.path)
        if self.bank.root is not None:
            try:
                source = source.relative_to(self.bank.root)
            except ValueError:
                source = Path(source.name)
        page = PurePosixPath(*source.parts).with_suffix(".html")
        if page == PurePosixPath("index.html"):
            page = PurePosixPath("index-page.html")
        return page

    def _anchor_link_filter(self, anchor: str, document: Document | None = None) -> str:
        """Jinja2 filter: link to an anchor, optionally on another page."""
        if document is None:
            return f"#{anchor}"
        return f"{self.page_path(document)}#{anchor}"

    def _markdown_filter(self, text: str):
        """Jinja2 filter: render a block of Markdown."""
        return HtmlConverter().convert(text.splitlines())
